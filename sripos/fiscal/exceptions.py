class FiscalError(Exception):
    """Handled exceptions from the fiscal core"""


class InvalidIdentificationError(FiscalError, ValueError):
    """Identification that cannot be used on a fiscal document"""


class AccessKeyError(FiscalError, ValueError):
    """Malformed access key or access key field"""


class SequenceError(FiscalError):
    """Document numbers could not be allocated"""


class SequenceExhaustedError(SequenceError):
    """Counter would no longer fit the 9-digit sequential"""


class CounterStoreError(SequenceError):
    """Durable counter store unreachable or failed mid-transaction"""


class TransportError(FiscalError):
    """Receipt transmission aborted, the print job must be restarted from scratch"""

    def __init__(self, message, offset=None):
        super().__init__(message)
        self.offset = offset
