from pathlib import Path

import classyclick
import click
from pydantic import ValidationError

from .. import printer
from ..fiscal.exceptions import TransportError
from ..printer.transport import DEFAULT_BAUD_RATE
from ..utils.models import ReceiptContent
from . import _mixins
from .cli import cli


@classyclick.command(group=cli)
class Receipt(_mixins.PrinterMixin, _mixins.LoggingMixin):
    """Print a receipt described by a JSON file on a thermal (ESC/POS) printer"""

    log_name = 'receipt'

    receipt_file: Path = classyclick.Argument()
    port: str = classyclick.Option('-p', help='Serial port of the printer, eg: /dev/rfcomm0 or COM5')
    baud_rate: int = classyclick.Option(default=DEFAULT_BAUD_RATE, help='Serial port speed')
    output: Path = classyclick.Option('-o', type=Path, help='Write the raw ESC/POS bytes to this file instead')
    chunk_size: int = classyclick.Option(default=printer.DEFAULT_CHUNK_SIZE, help='Bytes per write')
    debug: bool = classyclick.Option(help='Enable debug logging')

    def __call__(self):
        self.setup_logging()
        try:
            try:
                receipt = ReceiptContent.model_validate_json(self.receipt_file.read_text())
            except (OSError, ValidationError) as e:
                raise click.ClickException(f'Invalid receipt {self.receipt_file}: {e}')
            data = printer.encode(receipt)
            self.console_logger.debug('Encoded %s into %d bytes', receipt.document_number, len(data))
            sent = self.send_to_printer(data)
        except TransportError as e:
            self.file_logger.exception('Print job aborted')
            raise click.ClickException(f'{e} - print job aborted, send the whole receipt again')
        finally:
            self.close_logging()
        click.echo(f'Sent {sent} bytes')
