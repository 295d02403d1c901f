import tempfile
import threading
import unittest
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from sripos.fiscal.exceptions import CounterStoreError, SequenceExhaustedError
from sripos.fiscal.models import DocumentKind, Scope
from sripos.fiscal.sequence import MAX_SEQUENTIAL, DocumentSequencer, format_document_number, parse_document_number
from sripos.fiscal.stores import InMemoryCounterStore, SqlCounterStore

SCOPE = Scope('001', '001')


class TestDocumentNumbers(unittest.TestCase):
    def test_format(self):
        self.assertEqual(format_document_number(SCOPE, 1), '001-001-000000001')
        self.assertEqual(format_document_number(Scope('2', 15), MAX_SEQUENTIAL), '002-015-999999999')

    def test_format_overflow(self):
        with self.assertRaises(ValueError):
            format_document_number(SCOPE, MAX_SEQUENTIAL + 1)

    def test_parse(self):
        self.assertEqual(parse_document_number('002-015-000000042'), (Scope('002', '015'), '000000042'))

    def test_parse_invalid(self):
        for value in ['001-001-1', '001001000000001', '1-001-000000001', '001-001-00000000A', '', None]:
            with self.assertRaises(ValueError, msg=value):
                parse_document_number(value)


class TestScope(unittest.TestCase):
    def test_normalized(self):
        self.assertEqual(Scope('1', 2), Scope('001', '002'))
        self.assertEqual(str(Scope(1, 2)), '001-002')
        self.assertEqual(Scope.coerce(('003', '004')), Scope('003', '004'))

    def test_invalid(self):
        for establishment, emission_point in [('000', '001'), ('001', '0'), ('1000', '001'), ('A01', '001'), (-1, 1)]:
            with self.assertRaises(ValueError):
                Scope(establishment, emission_point)


class SequencerTests:
    """Behaviour shared by every counter store"""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()
        self.sequencer = DocumentSequencer(self.store)

    def test_first_number(self):
        self.assertEqual(self.sequencer.peek(DocumentKind.INVOICE, SCOPE), '001-001-000000001')
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-000000001')
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-000000002')
        self.assertEqual(self.sequencer.peek(DocumentKind.INVOICE, SCOPE), '001-001-000000003')

    def test_peek_does_not_allocate(self):
        self.sequencer.peek(DocumentKind.INVOICE, SCOPE)
        self.sequencer.peek(DocumentKind.INVOICE, SCOPE)
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-000000001')

    def test_kinds_and_scopes_are_independent(self):
        self.sequencer.next(DocumentKind.INVOICE, SCOPE)
        self.sequencer.next(DocumentKind.INVOICE, SCOPE)
        self.assertEqual(self.sequencer.next(DocumentKind.SALES_NOTE, SCOPE), '001-001-000000001')
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, ('001', '002')), '001-002-000000001')
        self.assertEqual(self.sequencer.next('invoice', ('2', '1')), '002-001-000000001')
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-000000003')

    def test_exhausted(self):
        self.store.raise_to(DocumentKind.INVOICE, SCOPE, MAX_SEQUENTIAL)
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-999999999')
        with self.assertRaises(SequenceExhaustedError):
            self.sequencer.next(DocumentKind.INVOICE, SCOPE)
        with self.assertRaises(SequenceExhaustedError):
            self.sequencer.peek(DocumentKind.INVOICE, SCOPE)
        # nothing moved
        self.assertEqual(self.store.current(DocumentKind.INVOICE, SCOPE), MAX_SEQUENTIAL + 1)
        # other scopes still work
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, ('001', '002')), '001-002-000000001')

    def test_sync(self):
        upcoming = self.sequencer.sync(DocumentKind.INVOICE, SCOPE, '001-001-000000041')
        self.assertEqual(upcoming, '001-001-000000042')
        self.assertEqual(self.sequencer.next(DocumentKind.INVOICE, SCOPE), '001-001-000000042')

    def test_sync_never_moves_back(self):
        for _ in range(5):
            self.sequencer.next(DocumentKind.INVOICE, SCOPE)
        self.assertEqual(self.sequencer.sync(DocumentKind.INVOICE, SCOPE, '001-001-000000002'), '001-001-000000006')

    def test_sync_other_scope(self):
        with self.assertRaises(ValueError):
            self.sequencer.sync(DocumentKind.INVOICE, SCOPE, '001-002-000000041')
        with self.assertRaises(ValueError):
            self.sequencer.sync(DocumentKind.INVOICE, SCOPE, '41')

    def test_concurrent_allocation(self):
        issued = []
        issued_lock = threading.Lock()

        def worker():
            for _ in range(self.per_thread):
                number = self.sequencer.next(DocumentKind.INVOICE, SCOPE)
                with issued_lock:
                    issued.append(number)

        threads = [threading.Thread(target=worker) for _ in range(self.threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        total = self.threads * self.per_thread
        self.assertEqual(len(set(issued)), total)
        self.assertEqual(sorted(issued), [format_document_number(SCOPE, i) for i in range(1, total + 1)])


class TestInMemorySequencer(SequencerTests, unittest.TestCase):
    threads = 8
    per_thread = 50

    def make_store(self):
        return InMemoryCounterStore()


class TestSqlSequencer(SequencerTests, unittest.TestCase):
    threads = 4
    per_thread = 10

    def make_store(self):
        # in-memory sqlite is one database per thread, use a file
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        store = SqlCounterStore(f'sqlite:///{tmp.name}/counters.db')
        self.addCleanup(store.close)
        return store


@pytest.fixture
def database_url(tmp_path):
    return f'sqlite:///{tmp_path / "counters.db"}'


def test_sql_store_survives_restart(database_url):
    store = SqlCounterStore(database_url)
    sequencer = DocumentSequencer(store)
    assert [sequencer.next(DocumentKind.INVOICE, SCOPE) for _ in range(3)][-1] == '001-001-000000003'
    store.close()

    store = SqlCounterStore(database_url)
    assert store.current(DocumentKind.INVOICE, SCOPE) == 4
    assert DocumentSequencer(store).next(DocumentKind.INVOICE, SCOPE) == '001-001-000000004'
    store.close()


def test_sql_store_shared_between_processes(database_url):
    # two stores on the same file behave like two POS terminals
    stores = [SqlCounterStore(database_url), SqlCounterStore(database_url)]
    issued = []
    issued_lock = threading.Lock()

    def worker(store):
        sequencer = DocumentSequencer(store)
        for _ in range(15):
            number = sequencer.next(DocumentKind.INVOICE, SCOPE)
            with issued_lock:
                issued.append(number)

    threads = [threading.Thread(target=worker, args=(store,)) for store in stores]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    for store in stores:
        store.close()

    assert sorted(issued) == [format_document_number(SCOPE, i) for i in range(1, 31)]


def test_sql_store_unreachable(tmp_path):
    with pytest.raises(CounterStoreError):
        SqlCounterStore(f'sqlite:///{tmp_path / "missing" / "dir" / "counters.db"}')


def test_sql_store_failure_issues_nothing():
    store = SqlCounterStore('sqlite://')
    sequencer = DocumentSequencer(store)
    assert sequencer.next(DocumentKind.INVOICE, SCOPE) == '001-001-000000001'

    engine = store.engine
    store.engine = MagicMock()
    store.engine.begin.side_effect = OperationalError('UPDATE', {}, Exception('disk I/O error'))
    with pytest.raises(CounterStoreError):
        sequencer.next(DocumentKind.INVOICE, SCOPE)

    store.engine = engine
    assert sequencer.next(DocumentKind.INVOICE, SCOPE) == '001-001-000000002'
    store.close()


def test_sql_store_requires_url_or_engine():
    with pytest.raises(ValueError):
        SqlCounterStore()
