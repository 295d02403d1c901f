"""
Durable counters behind document numbers.

A store keeps, per (document kind, scope), the next sequential to issue. Stores
start every counter at 1 and only move it forward.
"""

import logging
import threading
from typing import Protocol

from sqlalchemy import Integer, String, create_engine, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .exceptions import CounterStoreError, SequenceExhaustedError
from .models import DocumentKind, Scope

logger = logging.getLogger(__name__)

FIRST_SEQUENTIAL = 1


class CounterStore(Protocol):
    def current(self, kind: DocumentKind, scope: Scope) -> int:
        """Next sequential to be issued, without advancing"""
        ...

    def advance(self, kind: DocumentKind, scope: Scope, limit: int) -> int:
        """
        Atomically return the next sequential and move the counter past it.

        Must raise SequenceExhaustedError, leaving the counter untouched, when the
        sequential to issue is greater than `limit`. The new value must be durable
        before returning.
        """
        ...

    def raise_to(self, kind: DocumentKind, scope: Scope, value: int) -> int:
        """Move the counter to `value` if it is behind, returning the resulting counter"""
        ...


class InMemoryCounterStore:
    """
    Thread-safe in-memory counters.
    Used in tests and for single process, throw-away setups: nothing survives a restart.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: dict[tuple[DocumentKind, Scope], int] = {}

    def current(self, kind: DocumentKind, scope: Scope) -> int:
        with self._lock:
            return self._counters.get((kind, scope), FIRST_SEQUENTIAL)

    def advance(self, kind: DocumentKind, scope: Scope, limit: int) -> int:
        with self._lock:
            value = self._counters.get((kind, scope), FIRST_SEQUENTIAL)
            if value > limit:
                raise SequenceExhaustedError(f'{kind.value} sequence for {scope} is exhausted')
            self._counters[(kind, scope)] = value + 1
            return value

    def raise_to(self, kind: DocumentKind, scope: Scope, value: int) -> int:
        with self._lock:
            current = max(self._counters.get((kind, scope), FIRST_SEQUENTIAL), value)
            self._counters[(kind, scope)] = current
            return current


class Base(DeclarativeBase):
    pass


class Counter(Base):
    """One row per document kind, establishment and emission point"""

    __tablename__ = 'document_counters'

    kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    establishment: Mapped[str] = mapped_column(String(3), primary_key=True)
    emission_point: Mapped[str] = mapped_column(String(3), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=FIRST_SEQUENTIAL)


counters = Counter.__table__


def _key(kind: DocumentKind, scope: Scope):
    return (
        counters.c.kind == kind.value,
        counters.c.establishment == scope.establishment,
        counters.c.emission_point == scope.emission_point,
    )


class SqlCounterStore:
    """
    Counters kept in a database table through SQLAlchemy.

    Every advance runs in its own transaction (UPDATE value = value + 1 then read back),
    committed before the issued value is returned, so concurrent processes sharing the
    database never get the same sequential.
    """

    def __init__(self, url: str = None, engine=None, echo=False):
        if engine is None:
            if url is None:
                raise ValueError('url or engine required')
            connect_args = {'timeout': 30, 'check_same_thread': False} if url.startswith('sqlite') else {}
            engine = create_engine(url, echo=echo, connect_args=connect_args)
        self.engine = engine
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error('Counter store %s unavailable: %s', self.engine.url, e)
            raise CounterStoreError(f'Counter store unavailable: {e}') from e

    def _ensure_row(self, conn, kind: DocumentKind, scope: Scope):
        values = {
            'kind': kind.value,
            'establishment': scope.establishment,
            'emission_point': scope.emission_point,
            'value': FIRST_SEQUENTIAL,
        }
        if conn.dialect.name == 'sqlite':
            conn.execute(sqlite_insert(counters).values(**values).on_conflict_do_nothing())
        elif conn.execute(select(counters.c.value).where(*_key(kind, scope))).first() is None:
            conn.execute(counters.insert().values(**values))

    def current(self, kind: DocumentKind, scope: Scope) -> int:
        try:
            with self.engine.connect() as conn:
                value = conn.execute(select(counters.c.value).where(*_key(kind, scope))).scalar()
        except SQLAlchemyError as e:
            logger.error('Failed to read %s counter for %s: %s', kind.value, scope, e)
            raise CounterStoreError(f'Failed to read counter: {e}') from e
        return FIRST_SEQUENTIAL if value is None else value

    def advance(self, kind: DocumentKind, scope: Scope, limit: int) -> int:
        try:
            with self.engine.begin() as conn:
                self._ensure_row(conn, kind, scope)
                r = conn.execute(
                    update(counters)
                    .where(*_key(kind, scope), counters.c.value <= limit)
                    .values(value=counters.c.value + 1)
                )
                if r.rowcount != 1:
                    raise SequenceExhaustedError(f'{kind.value} sequence for {scope} is exhausted')
                value = conn.execute(select(counters.c.value).where(*_key(kind, scope))).scalar_one()
        except SQLAlchemyError as e:
            logger.error('Failed to advance %s counter for %s: %s', kind.value, scope, e)
            raise CounterStoreError(f'Failed to advance counter: {e}') from e
        return value - 1

    def raise_to(self, kind: DocumentKind, scope: Scope, value: int) -> int:
        try:
            with self.engine.begin() as conn:
                self._ensure_row(conn, kind, scope)
                conn.execute(update(counters).where(*_key(kind, scope), counters.c.value < value).values(value=value))
                current = conn.execute(select(counters.c.value).where(*_key(kind, scope))).scalar_one()
        except SQLAlchemyError as e:
            logger.error('Failed to raise %s counter for %s: %s', kind.value, scope, e)
            raise CounterStoreError(f'Failed to raise counter: {e}') from e
        return current

    def close(self):
        self.engine.dispose()
