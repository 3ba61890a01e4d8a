"""
Record Store Module

Table-keyed record store shared by the ledger and the rule timeline.
Records are JSON-compatible dictionaries: dates travel as ISO strings and
amounts as Decimal strings, so callers always get detached copies back.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
import copy
import json
import threading
from contextlib import contextmanager


Record = Dict[str, Any]


class StorageInterface(ABC):
    """Record store used by Ledger and RuleTimeline"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Record) -> None:
        """Insert a record, replacing whatever was stored under record_id"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Record]:
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Record]:
        pass

    @abstractmethod
    def find(self, table: str, filters: Record) -> List[Record]:
        """Records whose fields equal every filter value"""
        pass

    def begin_transaction(self) -> None:
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    @contextmanager
    def atomic(self):
        """Run a block as one unit: commit on success, roll back on any exception"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


class InMemoryStorage(StorageInterface):
    """
    Process-local store guarded by a re-entrant lock

    An atomic block keeps the lock from begin to commit, so validation reads
    and the following write see one consistent state. Each open block keeps a
    snapshot of all tables; rolling back restores the innermost one.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[str, Record]] = {}
        self._lock = threading.RLock()
        self._snapshots: List[Dict[str, Dict[str, Record]]] = []

    def _table(self, name: str) -> Dict[str, Record]:
        return self._tables.setdefault(name, {})

    @staticmethod
    def _detach(record: Record) -> Record:
        return json.loads(json.dumps(record, default=str))

    def save(self, table: str, record_id: str, data: Record) -> None:
        with self._lock:
            self._table(table)[record_id] = self._detach(data)

    def load(self, table: str, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._table(table).get(record_id)
            return None if record is None else self._detach(record)

    def load_all(self, table: str) -> List[Record]:
        with self._lock:
            return [self._detach(record) for record in self._table(table).values()]

    def find(self, table: str, filters: Record) -> List[Record]:
        with self._lock:
            return [
                self._detach(record)
                for record in self._table(table).values()
                if all(record.get(key, object()) == value for key, value in filters.items())
            ]

    def begin_transaction(self) -> None:
        self._lock.acquire()
        self._snapshots.append(copy.deepcopy(self._tables))

    def commit(self) -> None:
        self._snapshots.pop()
        self._lock.release()

    def rollback(self) -> None:
        self._tables = self._snapshots.pop()
        self._lock.release()
