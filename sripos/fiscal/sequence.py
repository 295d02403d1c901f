"""
Document number allocation.

Numbers look like EEE-PPP-SSSSSSSSS (establishment, emission point, sequential).
A sequential is never handed out twice for the same document kind and scope: the
counter store is advanced, durably, before the number leaves this module.
"""

import logging
import threading

from ..utils import is_digits, zero_pad
from .exceptions import SequenceExhaustedError
from .models import DocumentKind, Scope
from .stores import CounterStore

logger = logging.getLogger(__name__)

SEQUENTIAL_WIDTH = 9
MAX_SEQUENTIAL = 10**SEQUENTIAL_WIDTH - 1


def format_document_number(scope: Scope, sequential: int) -> str:
    return f'{scope.establishment}-{scope.emission_point}-{zero_pad(sequential, SEQUENTIAL_WIDTH)}'


def parse_document_number(value: str) -> tuple[Scope, str]:
    """Split 'EEE-PPP-SSSSSSSSS' into its scope and 9-digit sequential"""
    parts = value.split('-') if isinstance(value, str) else []
    if len(parts) != 3 or not all(is_digits(p, n) for p, n in zip(parts, (3, 3, SEQUENTIAL_WIDTH))):
        raise ValueError(f'{value!r} is not an EEE-PPP-SSSSSSSSS document number')
    return Scope(parts[0], parts[1]), parts[2]


class DocumentSequencer:
    def __init__(self, store: CounterStore):
        self.store = store
        self._locks: dict[tuple[DocumentKind, Scope], threading.Lock] = {}
        self._locks_lock = threading.Lock()

    def _lock(self, kind: DocumentKind, scope: Scope) -> threading.Lock:
        with self._locks_lock:
            return self._locks.setdefault((kind, scope), threading.Lock())

    def next(self, kind: DocumentKind, scope) -> str:
        """
        Allocate the next document number for `kind` in `scope`.

        Raises SequenceExhaustedError past 999999999 and CounterStoreError when the
        store cannot be advanced; no number is issued in either case.
        """
        kind = DocumentKind(kind)
        scope = Scope.coerce(scope)
        with self._lock(kind, scope):
            sequential = self.store.advance(kind, scope, MAX_SEQUENTIAL)
        number = format_document_number(scope, sequential)
        logger.info('Issued %s %s', kind.value, number)
        return number

    def peek(self, kind: DocumentKind, scope) -> str:
        """Number the next call to next() would return, without allocating it"""
        kind = DocumentKind(kind)
        scope = Scope.coerce(scope)
        sequential = self.store.current(kind, scope)
        if sequential > MAX_SEQUENTIAL:
            raise SequenceExhaustedError(f'{kind.value} sequence for {scope} is exhausted')
        return format_document_number(scope, sequential)

    def sync(self, kind: DocumentKind, scope, issued_number: str) -> str:
        """
        Make sure `issued_number`, already issued elsewhere (eg: by a previous install),
        is never issued again. Only ever moves the counter forward.

        Returns the number next() will allocate.
        """
        kind = DocumentKind(kind)
        scope = Scope.coerce(scope)
        issued_scope, sequential = parse_document_number(issued_number)
        if issued_scope != scope:
            raise ValueError(f'{issued_number} does not belong to {scope}')
        with self._lock(kind, scope):
            counter = self.store.raise_to(kind, scope, int(sequential) + 1)
        logger.info('Synced %s sequence for %s past %s, next is %s', kind.value, scope, issued_number, counter)
        return self.peek(kind, scope)
