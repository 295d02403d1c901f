"""
Access key (clave de acceso) generation.

A key is a 48-digit payload followed by a modulo-11 check digit:

    ddMMyyyy | codDoc(2) | RUC(13) | environment(1) | establishment(3)
    | emission point(3) | sequential(9) | numeric code(8) | emission type(1)

This modulo 11 is NOT the one used for RUCs: weights rotate 2..7 from the right
and a result of 10 maps to 1 instead of invalidating the key.
"""

import random
from datetime import date, datetime

from ..utils import digits_of, is_digits
from .exceptions import AccessKeyError
from .models import AccessKey, DocumentKind
from .sequence import parse_document_number

KEY_LENGTH = 49
PAYLOAD_LENGTH = KEY_LENGTH - 1

# tipo de emisión: normal issuance
NORMAL_EMISSION = '1'

ENVIRONMENTS = ('1', '2')  # testing, production

STATIC_NUMERIC_CODE = '12345678'

FIELD_WIDTHS = {
    'document code': 2,
    'ruc': 13,
    'environment': 1,
    'establishment': 3,
    'emission point': 3,
    'sequential': 9,
    'numeric code': 8,
}


def static_numeric_code() -> str:
    return STATIC_NUMERIC_CODE


def random_numeric_code() -> str:
    return str(random.randint(10_000_000, 99_999_999))


def check_digit(payload: str) -> int:
    factor = 2
    total = 0
    for d in reversed(digits_of(payload)):
        total += d * factor
        factor = 2 if factor == 7 else factor + 1

    result = 11 - total % 11
    if result == 11:
        return 0
    if result == 10:
        return 1
    return result


def _check_field(name: str, value) -> str:
    width = FIELD_WIDTHS[name]
    if not is_digits(value, width):
        raise AccessKeyError(f'{name} must be exactly {width} digits, got {value!r}')
    return value


class AccessKeyGenerator:
    """
    Builds access keys. `numeric_code` is called for every key generated without an
    explicit nonce; it defaults to the fixed placeholder code.
    """

    def __init__(self, numeric_code=static_numeric_code):
        self.numeric_code = numeric_code

    def generate(
        self,
        emission_date: date,
        document_code,
        ruc: str,
        environment: str,
        establishment: str,
        emission_point: str,
        sequential: str,
        nonce: str = None,
    ) -> str:
        if isinstance(document_code, DocumentKind):
            document_code = document_code.code
        if not isinstance(emission_date, date):
            raise AccessKeyError(f'emission date must be a date, got {emission_date!r}')
        if environment not in ENVIRONMENTS:
            raise AccessKeyError(f'environment must be one of {ENVIRONMENTS}, got {environment!r}')
        if nonce is None:
            nonce = self.numeric_code()

        payload = ''.join(
            [
                emission_date.strftime('%d%m%Y'),
                _check_field('document code', document_code),
                _check_field('ruc', ruc),
                environment,
                _check_field('establishment', establishment),
                _check_field('emission point', emission_point),
                _check_field('sequential', sequential),
                _check_field('numeric code', nonce),
                NORMAL_EMISSION,
            ]
        )
        if len(payload) != PAYLOAD_LENGTH:
            # only reachable with a year outside 1000-9999
            raise AccessKeyError(f'Access key payload has {len(payload)} digits')
        return f'{payload}{check_digit(payload)}'

    def generate_for_document(
        self,
        emission_date: date,
        kind: DocumentKind,
        ruc: str,
        environment: str,
        document_number: str,
        nonce: str = None,
    ) -> str:
        """Same as generate() but taking a formatted EEE-PPP-SSSSSSSSS document number"""
        try:
            scope, sequential = parse_document_number(document_number)
        except ValueError as e:
            raise AccessKeyError(str(e)) from None
        return self.generate(
            emission_date,
            kind,
            ruc,
            environment,
            scope.establishment,
            scope.emission_point,
            sequential,
            nonce=nonce,
        )


def generate(
    emission_date: date,
    document_code,
    ruc: str,
    environment: str,
    establishment: str,
    emission_point: str,
    sequential: str,
    nonce: str = STATIC_NUMERIC_CODE,
) -> str:
    return AccessKeyGenerator().generate(
        emission_date, document_code, ruc, environment, establishment, emission_point, sequential, nonce
    )


def verify(key) -> bool:
    """True when `key` is 49 digits and its last digit matches the recomputed check digit"""
    if not is_digits(key, KEY_LENGTH):
        return False
    return check_digit(key[:PAYLOAD_LENGTH]) == int(key[PAYLOAD_LENGTH])


def parse(key: str) -> AccessKey:
    if not verify(key):
        raise AccessKeyError(f'{key!r} is not a valid access key')
    try:
        emission_date = datetime.strptime(key[0:8], '%d%m%Y').date()
    except ValueError:
        raise AccessKeyError(f'{key[0:8]} is not a valid emission date') from None
    return AccessKey(
        emission_date=emission_date,
        document_code=key[8:10],
        ruc=key[10:23],
        environment=key[23],
        establishment=key[24:27],
        emission_point=key[27:30],
        sequential=key[30:39],
        numeric_code=key[39:47],
        emission_type=key[47],
        check_digit=key[48],
    )
