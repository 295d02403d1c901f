import click
import tomllib

from ..utils import config_path

COMMANDS = ('classify', 'key', 'peek', 'allocate', 'sync', 'receipt', 'issue')


def load_config(path=None) -> dict:
    """
    Read config.toml into a click default_map.

    Top-level keys (eg: ruc, database, port) are shared by every command, a [command] table
    overrides them for that command only:

        ruc = "1790011674001"
        database = "sqlite:////var/lib/sri-pos/counters.db"

        [issue]
        business_name = "La Esquina"
        port = "/dev/rfcomm0"
    """
    path = path or config_path()
    if not path.exists():
        return {}
    with path.open('rb') as f:
        config = tomllib.load(f)

    shared = {k: v for k, v in config.items() if not isinstance(v, dict)}
    default_map = {k: v for k, v in config.items() if isinstance(v, dict)}
    for name in COMMANDS:
        # click ignores defaults for options a command does not have
        default_map[name] = {**shared, **default_map.get(name, {})}
    return default_map


@click.group(context_settings={'default_map': load_config()})
def cli():
    """Fiscal documents for a restaurant point of sale: identifications, document numbers, access keys and receipts"""
