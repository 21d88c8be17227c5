"""
Storage Backend Module

Record store used by the ledger: an in-memory backend for tests and a SQLite
backend for persistence. Records are JSON documents keyed by id and kept in
insertion order; money travels as Decimal strings.

Writes that must land together go through ``atomic()``. The backend lock is
held for the whole block, so two read-modify-write sequences on one bank
cannot interleave, and the block is committed or rolled back as a unit.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
from decimal import Decimal
from datetime import datetime, timezone
from enum import Enum
import copy
import sqlite3
import json
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from contextlib import contextmanager


Document = Dict[str, Any]


class DuplicateRecordError(Exception):
    """An insert hit an id that is already stored"""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"Record {record_id} already exists in {table}")
        self.table = table
        self.record_id = record_id


def _to_json(data: Document) -> str:
    return json.dumps(data, default=str)


def _clone(data: Document) -> Document:
    return json.loads(_to_json(data))


def _matches(record: Document, filters: Document) -> bool:
    return all(key in record and record[key] == value for key, value in filters.items())


@dataclass
class StorageRecord:
    """Common fields of every stored entity"""
    id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Document:
        """Flatten to a JSON-ready document"""
        document = asdict(self)
        for key, value in document.items():
            if isinstance(value, datetime):
                document[key] = value.isoformat()
            elif isinstance(value, Decimal):
                document[key] = str(value)
            elif isinstance(value, Enum):
                document[key] = value.value
        return document

    @classmethod
    def from_dict(cls, data: Document) -> 'StorageRecord':
        fields = dict(data)
        for key in ('created_at', 'updated_at'):
            if isinstance(fields.get(key), str):
                fields[key] = datetime.fromisoformat(fields[key])
        return cls(**fields)


class StorageInterface(ABC):
    """
    Table-of-documents store.

    Backends own a reentrant ``_lock``; every method takes it, and
    ``atomic()`` keeps it for the length of the block. Nested ``atomic()``
    blocks join the outermost one.
    """

    _lock: threading.RLock

    @abstractmethod
    def save(self, table: str, record_id: str, data: Document) -> None:
        """Insert or replace; a replaced record keeps its position"""

    @abstractmethod
    def insert(self, table: str, record_id: str, data: Document) -> None:
        """Insert only; DuplicateRecordError when the id exists"""

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Document]:
        """Every record of ``table``, oldest insert first"""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def begin_transaction(self) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass

    def exists(self, table: str, record_id: str) -> bool:
        return self.load(table, record_id) is not None

    def find(self, table: str, filters: Document) -> List[Document]:
        """Records whose top-level keys equal every value in ``filters``"""
        return [record for record in self.load_all(table) if _matches(record, filters)]

    def count(self, table: str) -> int:
        return len(self.load_all(table))

    def clear_table(self, table: str) -> None:
        with self._lock:
            for record in self.load_all(table):
                self.delete(table, record['id'])

    @contextmanager
    def atomic(self):
        """Commit every write in the block, or none of them"""
        with self._lock:
            self.begin_transaction()
            try:
                yield self
            except BaseException:
                self.rollback()
                raise
            else:
                self.commit()


class InMemoryStorage(StorageInterface):
    """Dict-backed store; rollback restores a snapshot taken at the outermost begin"""

    def __init__(self):
        self._tables: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[Dict[str, Dict[str, Document]]] = None

    def _table(self, table: str) -> Dict[str, Document]:
        return self._tables.setdefault(table, {})

    def save(self, table: str, record_id: str, data: Document) -> None:
        with self._lock:
            self._table(table)[record_id] = _clone(data)

    def insert(self, table: str, record_id: str, data: Document) -> None:
        with self._lock:
            rows = self._table(table)
            if record_id in rows:
                raise DuplicateRecordError(table, record_id)
            rows[record_id] = _clone(data)

    def load(self, table: str, record_id: str) -> Optional[Document]:
        with self._lock:
            record = self._table(table).get(record_id)
            return _clone(record) if record is not None else None

    def load_all(self, table: str) -> List[Document]:
        with self._lock:
            return [_clone(record) for record in self._table(table).values()]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            return self._table(table).pop(record_id, None) is not None

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._tables[table] = {}

    def close(self) -> None:
        pass

    def begin_transaction(self) -> None:
        with self._lock:
            if self._depth == 0:
                self._snapshot = copy.deepcopy(self._tables)
            self._depth += 1

    def commit(self) -> None:
        with self._lock:
            self._depth -= 1
            if self._depth == 0:
                self._snapshot = None

    def rollback(self) -> None:
        with self._lock:
            self._depth -= 1
            if self._depth == 0:
                self._tables = self._snapshot
                self._snapshot = None


class SQLiteStorage(StorageInterface):
    """
    One SQLite table per record table.

    ``seq`` preserves insertion order across updates. The connection runs in
    autocommit mode and ``atomic()`` brackets its block with
    BEGIN IMMEDIATE / COMMIT / ROLLBACK.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0
        self._known_tables = set()

        if self.db_path != ":memory:":
            self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute("PRAGMA synchronous = NORMAL")

    def _execute(self, table: str, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            if table not in self._known_tables:
                self._connection.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} ("
                    "seq INTEGER PRIMARY KEY AUTOINCREMENT, "
                    "id TEXT NOT NULL UNIQUE, "
                    "data TEXT NOT NULL, "
                    "created_at TEXT NOT NULL, "
                    "updated_at TEXT NOT NULL)"
                )
                self._known_tables.add(table)
            return self._connection.execute(sql.format(table=table), params)

    def save(self, table: str, record_id: str, data: Document) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            updated = self._execute(
                table, "UPDATE {table} SET data = ?, updated_at = ? WHERE id = ?",
                (_to_json(data), now, record_id)
            )
            if updated.rowcount == 0:
                self.insert(table, record_id, data)

    def insert(self, table: str, record_id: str, data: Document) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            self._execute(
                table, "INSERT INTO {table} (id, data, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (record_id, _to_json(data), now, now)
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordError(table, record_id) from e

    def load(self, table: str, record_id: str) -> Optional[Document]:
        row = self._execute(table, "SELECT data FROM {table} WHERE id = ?", (record_id,)).fetchone()
        return json.loads(row['data']) if row else None

    def load_all(self, table: str) -> List[Document]:
        rows = self._execute(table, "SELECT data FROM {table} ORDER BY seq").fetchall()
        return [json.loads(row['data']) for row in rows]

    def delete(self, table: str, record_id: str) -> bool:
        return self._execute(table, "DELETE FROM {table} WHERE id = ?", (record_id,)).rowcount > 0

    def count(self, table: str) -> int:
        return self._execute(table, "SELECT COUNT(*) FROM {table}").fetchone()[0]

    def clear_table(self, table: str) -> None:
        self._execute(table, "DELETE FROM {table}")

    def begin_transaction(self) -> None:
        with self._lock:
            if self._depth == 0:
                self._connection.execute("BEGIN IMMEDIATE")
            self._depth += 1

    def commit(self) -> None:
        with self._lock:
            self._depth -= 1
            if self._depth == 0:
                self._connection.execute("COMMIT")

    def rollback(self) -> None:
        with self._lock:
            self._depth -= 1
            if self._depth == 0 and self._connection.in_transaction:
                self._connection.execute("ROLLBACK")

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


def create_storage(database_url: str) -> StorageInterface:
    """
    Storage backend for a database URL.

    ``memory://`` gives InMemoryStorage. ``sqlite:///relative.db``,
    ``sqlite:////absolute/path.db`` and ``sqlite://`` (in-memory) give
    SQLiteStorage.
    """
    if database_url.startswith("memory://"):
        return InMemoryStorage()
    if database_url.startswith("sqlite://"):
        path = database_url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        return SQLiteStorage(path or ":memory:")
    raise ValueError(f"Unsupported database URL: {database_url}")
