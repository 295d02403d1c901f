from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..fiscal.models import DocumentKind
from . import zero_pad

CENTS = Decimal('0.01')
DEFAULT_TAX_RATE = Decimal('15')

NO_ADDRESS = 'S/N'
FINAL_CONSUMER_NAME = 'CONSUMIDOR FINAL'


def money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class LineItem(BaseModel):
    model_config = ConfigDict(extra='allow')

    name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    # tax included, as shown on the menu
    unit_price: Decimal = Field(ge=0)


class Customer(BaseModel):
    model_config = ConfigDict(extra='allow')

    identification: str
    name: str = FINAL_CONSUMER_NAME
    address: Optional[str] = None
    email: Optional[str] = None


class DocumentRequest(BaseModel):
    """What the billing layer asks for: one fiscal document for a customer and its items"""

    model_config = ConfigDict(extra='allow')

    kind: DocumentKind = DocumentKind.INVOICE
    establishment: str = '001'
    emission_point: str = '001'
    customer: Customer
    items: list[LineItem] = Field(min_length=1)
    tax_rate: Decimal = Field(default=DEFAULT_TAX_RATE, ge=0)
    emission_date: Optional[date] = None

    @field_validator('establishment', 'emission_point', mode='before')
    @classmethod
    def _location_code(cls, value):
        code = zero_pad(value, 3)
        if code == '000':
            raise ValueError('establishment and emission point start at 001')
        return code

    def receipt_lines(self) -> list['ReceiptLine']:
        """
        Split tax-inclusive prices into base and tax, rounding per line to cents
        (base first, tax computed on the rounded base).
        """
        rate = self.tax_rate / 100
        lines = []
        for item in self.items:
            inclusive = item.unit_price * item.quantity
            subtotal = money(inclusive / (1 + rate))
            tax = money(subtotal * rate)
            lines.append(ReceiptLine(name=item.name, quantity=item.quantity, subtotal=subtotal, tax=tax))
        return lines


class ReceiptLine(BaseModel):
    name: str
    quantity: int
    subtotal: Decimal
    tax: Decimal = Decimal('0')

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax


class ReceiptContent(BaseModel):
    """Everything printed on a thermal receipt"""

    model_config = ConfigDict(extra='allow')

    business_name: str
    ruc: str
    address: str = NO_ADDRESS
    document_label: str
    document_number: str
    date: str
    customer_name: str = FINAL_CONSUMER_NAME
    customer_identification: str
    customer_address: str = NO_ADDRESS
    items: list[ReceiptLine]
    access_key: Optional[str] = None
    footer: str = 'Gracias por su compra'

    @field_validator('address', 'customer_address', mode='before')
    @classmethod
    def _address_placeholder(cls, value):
        return value or NO_ADDRESS

    @field_validator('customer_name', mode='before')
    @classmethod
    def _name_placeholder(cls, value):
        return value or FINAL_CONSUMER_NAME

    @property
    def subtotal(self) -> Decimal:
        return sum((line.subtotal for line in self.items), Decimal('0'))

    @property
    def tax(self) -> Decimal:
        return sum((line.tax for line in self.items), Decimal('0'))

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax
