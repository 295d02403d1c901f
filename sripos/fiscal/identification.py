"""
Classification and checksum validation of Ecuadorian identification numbers.

Cédulas (10 digits) and RUCs (13 digits) are verified with the tax authority's
algorithms; the final consumer sentinel and passport-like strings are accepted
as such.
"""

from enum import Enum
from typing import NamedTuple

from ..utils import digits_of, is_digits
from .exceptions import InvalidIdentificationError

FINAL_CONSUMER_ID = '9999999999999'

FOREIGN_PROVINCE = 30
MAX_PROVINCE = 24

MODULO_10_COEFFICIENTS = [2, 1, 2, 1, 2, 1, 2, 1, 2]
PUBLIC_ENTITY_COEFFICIENTS = [3, 2, 7, 6, 5, 4, 3, 2]
PRIVATE_ENTITY_COEFFICIENTS = [4, 3, 2, 7, 6, 5, 4, 3, 2]


class IdKind(str, Enum):
    NATURAL_CITIZEN = 'natural_citizen'
    TAXPAYER_NATURAL = 'taxpayer_natural'
    TAXPAYER_PUBLIC_ENTITY = 'taxpayer_public_entity'
    TAXPAYER_PRIVATE_ENTITY = 'taxpayer_private_entity'
    FINAL_CONSUMER = 'final_consumer'
    FOREIGN_PASSPORT = 'foreign_passport'
    UNKNOWN = 'unknown'


class Classification(NamedTuple):
    is_valid: bool
    kind: IdKind


INVALID = Classification(False, IdKind.UNKNOWN)

# buyer identification type as printed on the electronic invoice
BUYER_CODES = {
    IdKind.TAXPAYER_NATURAL: '04',
    IdKind.TAXPAYER_PUBLIC_ENTITY: '04',
    IdKind.TAXPAYER_PRIVATE_ENTITY: '04',
    IdKind.NATURAL_CITIZEN: '05',
    IdKind.FOREIGN_PASSPORT: '06',
    IdKind.FINAL_CONSUMER: '07',
}


def check_modulo_10(digits: list[int]) -> bool:
    """
    Natural person check (cédula and natural-person RUC).

    Each of the first 9 digits is multiplied by 2,1,2,1,...; products of 10 or more
    have 9 subtracted. The check digit (10th) is 10 - sum % 10, or 0 when the sum
    is a multiple of 10.
    """
    total = 0
    for d, c in zip(digits[:9], MODULO_10_COEFFICIENTS):
        product = d * c
        total += product - 9 if product >= 10 else product
    expected = 0 if total % 10 == 0 else 10 - total % 10
    return expected == digits[9]


def check_modulo_11(digits: list[int], coefficients: list[int], check_index: int) -> bool:
    """
    Entity RUC check: weighted sum of the leading digits, 11 - sum % 11 (0 when the
    remainder is 0). A result of 10 has no valid digit, so the RUC is rejected.
    """
    total = sum(d * c for d, c in zip(digits, coefficients))
    remainder = total % 11
    expected = 0 if remainder == 0 else 11 - remainder
    if expected == 10:
        return False
    return expected == digits[check_index]


class IdentificationValidator:
    """Stateless; a single instance may be shared between threads"""

    def classify(self, value) -> Classification:
        if not isinstance(value, str) or not value:
            return INVALID

        if value == FINAL_CONSUMER_ID:
            return Classification(True, IdKind.FINAL_CONSUMER)

        if not is_digits(value):
            if len(value) >= 5:
                return Classification(True, IdKind.FOREIGN_PASSPORT)
            return INVALID

        length = len(value)
        if length not in (10, 13):
            # numeric foreign documents
            if 5 < length < 20:
                return Classification(True, IdKind.FOREIGN_PASSPORT)
            return INVALID

        province = int(value[:2])
        if not (1 <= province <= MAX_PROVINCE or province == FOREIGN_PROVINCE):
            return INVALID

        digits = digits_of(value)
        third = digits[2]

        if third < 6:
            if check_modulo_10(digits):
                if length == 10:
                    return Classification(True, IdKind.NATURAL_CITIZEN)
                if int(value[10:]) >= 1:
                    return Classification(True, IdKind.TAXPAYER_NATURAL)
        elif third == 6:
            if length != 13:
                return INVALID
            if check_modulo_11(digits, PUBLIC_ENTITY_COEFFICIENTS, 8) and int(value[9:]) >= 1:
                return Classification(True, IdKind.TAXPAYER_PUBLIC_ENTITY)
        elif third == 9:
            if length != 13:
                return INVALID
            if check_modulo_11(digits, PRIVATE_ENTITY_COEFFICIENTS, 9) and int(value[10:]) >= 1:
                return Classification(True, IdKind.TAXPAYER_PRIVATE_ENTITY)

        # third digit 7 and 8 have no regime and land here as well
        return INVALID

    def is_ruc(self, value) -> bool:
        return self.classify(value).kind in (
            IdKind.TAXPAYER_NATURAL,
            IdKind.TAXPAYER_PUBLIC_ENTITY,
            IdKind.TAXPAYER_PRIVATE_ENTITY,
        )


def classify(value) -> Classification:
    """Classify `value`, returning (is_valid, kind). Never raises."""
    return IdentificationValidator().classify(value)


def buyer_identification_code(kind: IdKind) -> str:
    try:
        return BUYER_CODES[kind]
    except KeyError:
        raise InvalidIdentificationError(f'No buyer identification type for {kind.value}') from None
