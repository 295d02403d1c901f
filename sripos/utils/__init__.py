from pathlib import Path

from platformdirs import user_config_path, user_data_path, user_log_path

APP_NAME = 'sri-pos'
CONFIG_FILENAME = 'config.toml'
COUNTERS_FILENAME = 'counters.db'


def config_path() -> Path:
    return user_config_path(APP_NAME) / CONFIG_FILENAME


def counters_path() -> Path:
    return user_data_path(APP_NAME) / COUNTERS_FILENAME


def logs_path() -> Path:
    return user_log_path(APP_NAME)


def default_database_url() -> str:
    path = counters_path()
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    return f'sqlite:///{path}'


def is_digits(value, length: int = None) -> bool:
    """True when value is a str made only of ASCII digits (and, optionally, of exactly length chars)"""
    if not isinstance(value, str) or not value or not value.isascii() or not value.isdigit():
        return False
    return length is None or len(value) == length


def digits_of(value: str) -> list[int]:
    return [int(d) for d in value]


def only_digits(value: str) -> str:
    """Strip everything that is not a digit, eg: 'RUC 1790-011674-001' -> '1790011674001'"""
    return ''.join(filter(str.isdigit, value))


def zero_pad(value, width: int) -> str:
    """
    Left-pad a non-negative integer (or digit string) with zeros to `width`.

    Unlike str.zfill this never truncates nor accepts signs: a value that does not
    fit raises ValueError, as these strings end up in fiscal identifiers.
    """
    if isinstance(value, bool):
        raise ValueError(f'{value!r} is not a number')
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f'{value} is negative')
        value = str(value)
    elif not is_digits(value):
        raise ValueError(f'{value!r} is not a digit string')
    if len(value) > width:
        raise ValueError(f'{value} does not fit in {width} digits')
    return value.zfill(width)
