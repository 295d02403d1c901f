import logging
from datetime import datetime
from functools import cached_property

import click

from ..fiscal import DocumentSequencer, SqlCounterStore
from ..fiscal.exceptions import TransportError
from ..printer import transport
from ..utils import default_database_url, logs_path


class SequencerMixin:
    @cached_property
    def sequencer(self):
        return DocumentSequencer(SqlCounterStore(self.database or default_database_url()))


class LoggingMixin:
    log_name = 'run'

    def setup_logging(self):
        logs_dir = logs_path()
        logs_dir.mkdir(parents=True, exist_ok=True)

        # YEARMMDD_HHMMSS prefix
        prefix = datetime.now().strftime('%Y%m%d_%H%M%S')
        log_file = logs_dir / f'{prefix}_{self.log_name}.log'

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
        self._file_handler = logging.FileHandler(log_file)
        self._file_handler.setFormatter(formatter)

        # library loggers (sequence allocation, transport) go to the file only
        package_logger = logging.getLogger('sripos')
        package_logger.setLevel(logging.DEBUG)
        package_logger.addHandler(self._file_handler)

        # file-only logger
        self.file_logger = logging.getLogger(f'file_{self.log_name}')
        self.file_logger.setLevel(logging.DEBUG)
        self.file_logger.propagate = False
        self.file_logger.addHandler(self._file_handler)

        # file-and-console logger
        self.console_logger = logging.getLogger(f'console_{self.log_name}')
        self.console_logger.setLevel(logging.DEBUG)
        self.console_logger.propagate = False
        self.console_logger.addHandler(self._file_handler)
        self._console_handler = logging.StreamHandler()
        self._console_handler.setFormatter(formatter)
        if not self.debug:
            self._console_handler.setLevel(logging.INFO)
        self.console_logger.addHandler(self._console_handler)

        self.console_logger.debug(f'Logging to: {log_file}')

    def close_logging(self):
        handler = getattr(self, '_file_handler', None)
        if handler is None:
            return
        logging.getLogger('sripos').removeHandler(handler)
        self.file_logger.removeHandler(handler)
        self.console_logger.removeHandler(handler)
        self.console_logger.removeHandler(self._console_handler)
        handler.close()
        self._file_handler = None


class PrinterMixin:
    def send_to_printer(self, data: bytes) -> int:
        if self.port:
            with transport.SerialTransport(self.port, baud_rate=self.baud_rate) as port:
                return transport.send(data, port, chunk_size=self.chunk_size)
        if self.output:
            try:
                with self.output.open('wb') as f:
                    return transport.send(data, f, chunk_size=self.chunk_size)
            except OSError as e:
                raise TransportError(f'Cannot write {self.output}: {e}') from e
        raise click.ClickException('Use --port or --output to choose where the receipt goes')
