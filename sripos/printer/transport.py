"""
Delivery of encoded receipts to a printer.

Writes are strictly sequential: low-energy wireless bridges only keep ordering for
one outstanding write and may silently drop overlapping ones. A failed write ends
the print job; printer modes (bold, alignment) are unknown at that point, so the
caller must re-encode and resend the whole receipt rather than resume.
"""

import logging

import serial

from ..fiscal.exceptions import TransportError
from . import DEFAULT_CHUNK_SIZE, chunks

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 9600
DEFAULT_TIMEOUT = 5  # seconds


def send(data: bytes, transport, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Write `data` to `transport` (anything with a write(bytes) method) in chunks of
    `chunk_size` bytes, one after the other.

    Returns the number of bytes sent. Raises TransportError on the first failed or
    short write, without retrying.
    """
    offset = 0
    for chunk in chunks(data, chunk_size):
        try:
            written = transport.write(chunk)
        except (OSError, serial.SerialException) as e:
            logger.error('Write failed at byte %d of %d: %s', offset, len(data), e)
            raise TransportError(f'Printer write failed at byte {offset}: {e}', offset=offset) from e
        if written is not None and written != len(chunk):
            logger.error('Short write at byte %d: %d of %d bytes', offset, written, len(chunk))
            raise TransportError(f'Printer accepted {written} of {len(chunk)} bytes at byte {offset}', offset=offset)
        offset += len(chunk)
        logger.debug('Sent %d/%d bytes', offset, len(data))
    return offset


class SerialTransport:
    """Serial (or Bluetooth SPP) printer port, flushed after every chunk"""

    def __init__(self, port: str, baud_rate: int = DEFAULT_BAUD_RATE, timeout: float = DEFAULT_TIMEOUT):
        self.port = port
        self.baud_rate = baud_rate
        self.timeout = timeout
        self._serial = None

    def open(self):
        try:
            self._serial = serial.Serial(self.port, self.baud_rate, timeout=self.timeout, write_timeout=self.timeout)
        except serial.SerialException as e:
            raise TransportError(f'Cannot open printer port {self.port}: {e}') from e
        logger.debug('Opened %s at %d baud', self.port, self.baud_rate)
        return self

    def write(self, chunk: bytes) -> int:
        if self._serial is None:
            raise TransportError(f'Printer port {self.port} is not open')
        written = self._serial.write(chunk)
        self._serial.flush()
        return written

    def close(self):
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self) -> str:
        status = 'open' if self._serial is not None else 'closed'
        return f'<{self.__class__.__name__} {self.port} {status}>'
