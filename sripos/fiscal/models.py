from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..utils import zero_pad


class DocumentKind(str, Enum):
    INVOICE = 'invoice'
    SALES_NOTE = 'sales_note'
    CREDIT_NOTE = 'credit_note'

    @property
    def code(self) -> str:
        """Document type code (codDoc) used in access keys"""
        return DOCUMENT_CODES[self]

    @property
    def label(self) -> str:
        return DOCUMENT_LABELS[self]

    @classmethod
    def from_code(cls, code: str) -> 'DocumentKind':
        for kind, kind_code in DOCUMENT_CODES.items():
            if kind_code == code:
                return kind
        raise ValueError(f'Unknown document type code {code!r}')


DOCUMENT_CODES = {
    DocumentKind.INVOICE: '01',
    DocumentKind.SALES_NOTE: '02',
    DocumentKind.CREDIT_NOTE: '04',
}

DOCUMENT_LABELS = {
    DocumentKind.INVOICE: 'Factura',
    DocumentKind.SALES_NOTE: 'Nota de Venta',
    DocumentKind.CREDIT_NOTE: 'Nota de Credito',
}


@dataclass(frozen=True)
class Scope:
    """Establishment and emission point pair, each kept as a 3-digit code"""

    establishment: str
    emission_point: str

    def __post_init__(self):
        object.__setattr__(self, 'establishment', _location_code(self.establishment, 'establishment'))
        object.__setattr__(self, 'emission_point', _location_code(self.emission_point, 'emission point'))

    @classmethod
    def coerce(cls, value) -> 'Scope':
        if isinstance(value, cls):
            return value
        establishment, emission_point = value
        return cls(establishment, emission_point)

    def __str__(self):
        return f'{self.establishment}-{self.emission_point}'


def _location_code(value, name) -> str:
    try:
        code = zero_pad(value, 3)
    except ValueError as e:
        raise ValueError(f'Invalid {name}: {e}') from None
    if code == '000':
        raise ValueError(f'Invalid {name}: must be 001 or greater')
    return code


@dataclass(frozen=True)
class AccessKey:
    """Fields of a parsed 49-digit access key"""

    emission_date: date
    document_code: str
    ruc: str
    environment: str
    establishment: str
    emission_point: str
    sequential: str
    numeric_code: str
    emission_type: str
    check_digit: str

    @property
    def document_number(self) -> str:
        return f'{self.establishment}-{self.emission_point}-{self.sequential}'
