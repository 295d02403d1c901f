import classyclick
import click

from ..fiscal.exceptions import SequenceError
from ..fiscal.models import DocumentKind, Scope
from . import _mixins
from .cli import cli

KINDS = [kind.value for kind in DocumentKind]


class _ScopeMixin:
    @property
    def scope(self) -> Scope:
        try:
            return Scope(self.establishment, self.emission_point)
        except ValueError as e:
            raise click.ClickException(str(e))


@classyclick.command(group=cli)
class Peek(_ScopeMixin, _mixins.SequencerMixin):
    """Show the next document number without allocating it"""

    kind: str = classyclick.Option('-k', default='invoice', type=click.Choice(KINDS), help='Document kind')
    establishment: str = classyclick.Option(default='001', help='Establishment code')
    emission_point: str = classyclick.Option(default='001', help='Emission point code')
    database: str = classyclick.Option(help='SQLAlchemy URL of the counter store, defaults to a local SQLite file')

    def __call__(self):
        try:
            click.echo(self.sequencer.peek(DocumentKind(self.kind), self.scope))
        except SequenceError as e:
            raise click.ClickException(str(e))


@classyclick.command(group=cli)
class Allocate(_ScopeMixin, _mixins.SequencerMixin, _mixins.LoggingMixin):
    """Allocate (issue) the next document number"""

    log_name = 'allocate'

    kind: str = classyclick.Option('-k', default='invoice', type=click.Choice(KINDS), help='Document kind')
    establishment: str = classyclick.Option(default='001', help='Establishment code')
    emission_point: str = classyclick.Option(default='001', help='Emission point code')
    database: str = classyclick.Option(help='SQLAlchemy URL of the counter store, defaults to a local SQLite file')
    debug: bool = classyclick.Option(help='Enable debug logging')

    def __call__(self):
        self.setup_logging()
        try:
            number = self.sequencer.next(DocumentKind(self.kind), self.scope)
        except SequenceError as e:
            self.file_logger.exception('Failed to allocate document number')
            raise click.ClickException(str(e))
        finally:
            self.close_logging()
        click.echo(number)


@classyclick.command(group=cli)
class Sync(_ScopeMixin, _mixins.SequencerMixin, _mixins.LoggingMixin):
    """Move the counter past a document number already issued elsewhere"""

    log_name = 'sync'

    issued_number: str = classyclick.Argument()
    kind: str = classyclick.Option('-k', default='invoice', type=click.Choice(KINDS), help='Document kind')
    establishment: str = classyclick.Option(default='001', help='Establishment code')
    emission_point: str = classyclick.Option(default='001', help='Emission point code')
    database: str = classyclick.Option(help='SQLAlchemy URL of the counter store, defaults to a local SQLite file')
    debug: bool = classyclick.Option(help='Enable debug logging')

    def __call__(self):
        self.setup_logging()
        try:
            upcoming = self.sequencer.sync(DocumentKind(self.kind), self.scope, self.issued_number)
        except (SequenceError, ValueError) as e:
            self.file_logger.exception('Failed to sync sequence')
            raise click.ClickException(str(e))
        finally:
            self.close_logging()
        click.echo(f'Next {self.kind} number: {upcoming}')
