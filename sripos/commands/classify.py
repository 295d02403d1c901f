import classyclick
import click

from ..fiscal.identification import IdentificationValidator, buyer_identification_code
from .cli import cli


@classyclick.command(group=cli)
class Classify:
    """Tell whether an identification (cédula, RUC, passport) is valid and which kind it is"""

    identification: str = classyclick.Argument()

    def __call__(self):
        result = IdentificationValidator().classify(self.identification)
        if not result.is_valid:
            raise click.ClickException(f'{self.identification} is not a valid identification')
        code = buyer_identification_code(result.kind)
        click.echo(f'{self.identification}: {click.style(result.kind.value, fg="green")} (buyer type {code})')
