"""
ESC/POS encoding for thermal receipt printers.

Only the handful of commands small Bluetooth/serial printers agree on are used:
initialize, align, bold, text, newline and cut. Nothing here talks to a device,
see `transport` for that.
"""

from ..utils.models import ReceiptContent

ESC = 0x1B
GS = 0x1D
LF = 0x0A
QUESTION_MARK = 0x3F

INITIALIZE = bytes([ESC, 0x40])
ALIGN = bytes([ESC, 0x61])
BOLD = bytes([ESC, 0x45])
CUT = bytes([GS, 0x56, 0x42, 0x00])

ALIGNMENTS = {'left': 0, 'center': 1, 'right': 2}

DEFAULT_CHUNK_SIZE = 100
LINE_WIDTH = 32
SEPARATOR = '-' * LINE_WIDTH


class ReceiptEncoder:
    """Accumulates commands, every method returns the encoder so calls can be chained"""

    def __init__(self):
        self.buffer = bytearray()

    def initialize(self):
        self.buffer += INITIALIZE
        return self

    def align(self, alignment: str):
        try:
            mode = ALIGNMENTS[alignment]
        except KeyError:
            raise ValueError(f'Unknown alignment {alignment!r}') from None
        self.buffer += ALIGN
        self.buffer.append(mode)
        return self

    def bold(self, enable: bool):
        self.buffer += BOLD
        self.buffer.append(1 if enable else 0)
        return self

    def text(self, content: str):
        # firmware is single-byte only
        self.buffer.extend(code if code <= 0xFF else QUESTION_MARK for code in map(ord, content))
        return self

    def newline(self):
        self.buffer.append(LF)
        return self

    def line(self, content: str):
        return self.text(content).newline()

    def cut(self):
        self.buffer += CUT
        return self

    def encode(self) -> bytes:
        return bytes(self.buffer)


def chunks(data: bytes, size: int = DEFAULT_CHUNK_SIZE):
    """Yield consecutive slices of at most `size` bytes, in order"""
    if size <= 0:
        raise ValueError('chunk size must be positive')
    for i in range(0, len(data), size):
        yield data[i : i + size]


def _amount(value) -> str:
    return f'${value:.2f}'


def encode(receipt: ReceiptContent) -> bytes:
    e = ReceiptEncoder()
    e.initialize().align('center')
    e.bold(True).line(receipt.business_name).bold(False)
    e.line(f'RUC: {receipt.ruc}')
    e.line(receipt.address[:LINE_WIDTH])
    e.line(SEPARATOR)
    e.bold(True).text(receipt.document_label.upper()).bold(False).newline()
    e.line(f'No: {receipt.document_number}')
    e.line(f'Fecha: {receipt.date}')
    e.line(SEPARATOR)

    e.align('left')
    e.line(f'Cliente: {receipt.customer_name}')
    e.line(f'ID: {receipt.customer_identification}')
    e.line(f'Dir: {receipt.customer_address[: LINE_WIDTH - 5]}')
    for item in receipt.items:
        e.line(f'{item.quantity}x {item.name}')
        e.align('right').line(_amount(item.total)).align('left')

    e.line(SEPARATOR)
    e.align('right')
    e.line(f'SUBTOTAL: {_amount(receipt.subtotal)}')
    e.line(f'IVA: {_amount(receipt.tax)}')
    e.bold(True).line(f'TOTAL: {_amount(receipt.total)}').bold(False)

    if receipt.access_key:
        e.align('center').newline()
        e.line('Clave de acceso:')
        # 49 digits do not fit a 32 column roll
        e.line(receipt.access_key[:25])
        e.line(receipt.access_key[25:])

    e.align('center').newline()
    e.line(receipt.footer)
    e.newline().newline().newline()
    e.cut()
    return e.encode()
