from datetime import date

import classyclick
import click

from ..fiscal import access_key
from ..fiscal.exceptions import AccessKeyError
from ..fiscal.identification import IdentificationValidator
from ..fiscal.models import DocumentKind
from .cli import cli

KINDS = [kind.value for kind in DocumentKind]


def parse_date(value) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.ClickException(f'{value} is not a YYYY-MM-DD date')


@classyclick.command(group=cli)
class Key:
    """Generate the 49-digit access key of a fiscal document"""

    ruc: str = classyclick.Option('-r', help='Issuer RUC (13 digits)')
    sequential: str = classyclick.Option('-s', help='Sequential (9 digits) or full EEE-PPP-SSSSSSSSS document number')
    kind: str = classyclick.Option('-k', default='invoice', type=click.Choice(KINDS), help='Document kind')
    emission_date: str = classyclick.Option('-d', help='Emission date as YYYY-MM-DD, defaults to today')
    environment: str = classyclick.Option(
        default='1', type=click.Choice(['1', '2']), help='Tax authority environment: 1 testing, 2 production'
    )
    establishment: str = classyclick.Option(default='001', help='Establishment code (3 digits)')
    emission_point: str = classyclick.Option(default='001', help='Emission point code (3 digits)')
    numeric_code: str = classyclick.Option(help='8-digit numeric code, defaults to the fixed placeholder')
    random_code: bool = classyclick.Option(help='Draw a random numeric code')

    def __call__(self):
        if not self.ruc or not IdentificationValidator().is_ruc(self.ruc):
            raise click.ClickException(f'{self.ruc} is not a valid RUC')
        if not self.sequential:
            raise click.ClickException('Missing --sequential')

        numeric_code = access_key.random_numeric_code if self.random_code else access_key.static_numeric_code
        generator = access_key.AccessKeyGenerator(numeric_code=numeric_code)
        kind = DocumentKind(self.kind)
        emission_date = parse_date(self.emission_date)
        try:
            if '-' in self.sequential:
                key = generator.generate_for_document(
                    emission_date, kind, self.ruc, self.environment, self.sequential, nonce=self.numeric_code
                )
            else:
                key = generator.generate(
                    emission_date,
                    kind,
                    self.ruc,
                    self.environment,
                    self.establishment,
                    self.emission_point,
                    self.sequential,
                    nonce=self.numeric_code,
                )
        except AccessKeyError as e:
            raise click.ClickException(str(e))
        click.echo(key)
