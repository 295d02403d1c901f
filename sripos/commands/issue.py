from datetime import date
from pathlib import Path

import classyclick
import click
from pydantic import ValidationError

from .. import printer
from ..fiscal import access_key
from ..fiscal.exceptions import FiscalError
from ..fiscal.identification import IdentificationValidator, IdKind, buyer_identification_code
from ..fiscal.models import Scope
from ..printer.transport import DEFAULT_BAUD_RATE
from ..utils.models import DocumentRequest, ReceiptContent
from . import _mixins
from .cli import cli


@classyclick.command(group=cli)
class Issue(_mixins.SequencerMixin, _mixins.PrinterMixin, _mixins.LoggingMixin):
    """Issue a fiscal document from a JSON request: validate the buyer, number it, build its access key and print it"""

    log_name = 'issue'

    request_file: Path = classyclick.Argument()

    ruc: str = classyclick.Option('-r', help='Issuer RUC (13 digits)')
    business_name: str = classyclick.Option(help='Issuer name printed on the receipt header')
    address: str = classyclick.Option(help='Issuer address printed on the receipt header')
    environment: str = classyclick.Option(
        default='1', type=click.Choice(['1', '2']), help='Tax authority environment: 1 testing, 2 production'
    )
    random_code: bool = classyclick.Option(help='Use a random numeric code in the access key instead of the fixed one')
    database: str = classyclick.Option(help='SQLAlchemy URL of the counter store, defaults to a local SQLite file')
    port: str = classyclick.Option('-p', help='Serial port of the receipt printer')
    baud_rate: int = classyclick.Option(default=DEFAULT_BAUD_RATE, help='Serial port speed')
    output: Path = classyclick.Option('-o', type=Path, help='Write the receipt ESC/POS bytes to this file')
    chunk_size: int = classyclick.Option(default=printer.DEFAULT_CHUNK_SIZE, help='Bytes per printer write')
    debug: bool = classyclick.Option(help='Enable debug logging')

    def __call__(self):
        self.setup_logging()
        try:
            request = self.load_request()
            self.check_issuer()
            self.check_buyer(request)

            scope = Scope(request.establishment, request.emission_point)
            number = self.sequencer.next(request.kind, scope)
            self.console_logger.info('Document number allocated: %s', number)

            emission_date = request.emission_date or date.today()
            numeric_code = access_key.random_numeric_code if self.random_code else access_key.static_numeric_code
            key = access_key.AccessKeyGenerator(numeric_code=numeric_code).generate_for_document(
                emission_date, request.kind, self.ruc, self.environment, number
            )
            self.console_logger.info('Access key: %s', key)

            receipt = self.build_receipt(request, number, key, emission_date)
            if self.port or self.output:
                sent = self.send_to_printer(printer.encode(receipt))
                self.console_logger.info('Receipt sent (%d bytes)', sent)
        except FiscalError as e:
            self.file_logger.exception('Failed to issue document')
            raise click.ClickException(str(e))
        except Exception:
            self.file_logger.exception('Failed to issue document')
            raise
        finally:
            self.close_logging()
        click.echo(f'{number} {key}')

    def load_request(self) -> DocumentRequest:
        try:
            return DocumentRequest.model_validate_json(self.request_file.read_text())
        except (OSError, ValidationError) as e:
            raise click.ClickException(f'Invalid document request {self.request_file}: {e}')

    def check_issuer(self):
        if not self.ruc or not IdentificationValidator().is_ruc(self.ruc):
            raise click.ClickException(f'Issuer RUC {self.ruc} is not valid, check --ruc or the config file')

    def check_buyer(self, request: DocumentRequest) -> IdKind:
        identification = request.customer.identification
        result = IdentificationValidator().classify(identification)
        if not result.is_valid:
            raise click.ClickException(f'Customer identification {identification} is not valid, ask for it again')
        self.console_logger.info(
            'Customer %s: %s (buyer type %s)', identification, result.kind.value, buyer_identification_code(result.kind)
        )
        return result.kind

    def build_receipt(self, request: DocumentRequest, number: str, key: str, emission_date: date):
        return ReceiptContent(
            business_name=self.business_name or self.ruc,
            ruc=self.ruc,
            address=self.address,
            document_label=request.kind.label,
            document_number=number,
            date=emission_date.strftime('%d/%m/%Y'),
            customer_name=request.customer.name,
            customer_identification=request.customer.identification,
            customer_address=request.customer.address,
            items=request.receipt_lines(),
            access_key=key,
        )
