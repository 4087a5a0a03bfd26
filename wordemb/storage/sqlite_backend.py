"""
SQLite implementation of the key-value backend.

Layout: one table (default ``fasttext``) with ``word TEXT UNIQUE`` and ``emb BLOB``
columns, plus a lookup index on ``word`` that is only created after the bulk load
so inserts do not pay for index maintenance.
"""

import re
import sqlite3
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from wordemb.config import settings
from wordemb.storage.backend import KeyValueBackend
from wordemb.utils.exceptions import (
    ConfigurationError,
    DuplicateKeyError,
    SchemaError,
    StorageError,
    StoreStateError,
    WordEmbError,
)
from wordemb.utils.logger import logger

MEMORY_PATH = ":memory:"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str, kind: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ConfigurationError(f"Invalid {kind} name {name!r}", details={kind: name})
    return name


class SqliteBackend(KeyValueBackend):
    """Key-value backend stored in a single SQLite table.

    Args:
        db_path: Database file, or ":memory:"
        table_name: Table holding the word/emb rows
        index_name: Name of the lookup index built after the bulk load
        read_only: Open an existing file read-only (for concurrent reader sessions)
        connection: Use an already open connection instead of db_path
    """

    def __init__(
        self,
        db_path: Union[str, Path] = MEMORY_PATH,
        table_name: Optional[str] = None,
        index_name: Optional[str] = None,
        read_only: bool = False,
        connection: Optional[sqlite3.Connection] = None,
    ):
        self.table_name = _check_identifier(table_name or settings.store.table_name, "table")
        self.index_name = _check_identifier(index_name or settings.store.index_name, "index")
        self.read_only = read_only
        self.db_path = str(db_path)
        self.conn = connection if connection is not None else self._connect()

        t = self.table_name
        self._insert_sql = f"INSERT INTO {t} (word, emb) VALUES (?, ?)"
        self._select_sql = f"SELECT emb FROM {t} WHERE word = ?"

    def _connect(self) -> sqlite3.Connection:
        try:
            if self.db_path == MEMORY_PATH:
                return sqlite3.connect(MEMORY_PATH)
            path = Path(self.db_path)
            if self.read_only:
                if not path.is_file():
                    raise StorageError(f"No embedding store at {path}", details={"path": str(path)})
                return sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(path))
            logger.debug(f"Connected to SQLite embedding store: {path}")
            return conn
        except (sqlite3.Error, OSError) as e:
            raise StorageError(
                f"Cannot open embedding store {self.db_path}: {e}", details={"path": self.db_path}
            ) from e

    @classmethod
    def mirror_of(
        cls,
        source_path: Union[str, Path],
        table_name: Optional[str] = None,
        index_name: Optional[str] = None,
    ) -> "SqliteBackend":
        """Copy a built on-disk store into a fresh in-memory database and re-index it."""
        source = Path(source_path)
        if not source.is_file():
            raise StorageError(f"No embedding store at {source}", details={"path": str(source)})

        conn = sqlite3.connect("file::memory:", uri=True)
        try:
            backend = cls(connection=conn, table_name=table_name, index_name=index_name)
            t, i = backend.table_name, backend.index_name
            conn.execute("ATTACH DATABASE ? AS disk", (f"{source.resolve().as_uri()}?mode=ro",))
            found = {
                row[0]
                for row in conn.execute(
                    "SELECT name FROM disk.sqlite_master WHERE (type = 'table' AND name = ?) "
                    "OR (type = 'index' AND name = ?)",
                    (t, i),
                )
            }
            if t not in found:
                raise StoreStateError("mirror the store", "uninitialized", details={"path": str(source)})
            if i not in found:
                raise StoreStateError(
                    "mirror the store", "incomplete (bulk load never finished)", details={"path": str(source)}
                )
            conn.execute(f"CREATE TABLE main.{t} AS SELECT word, emb FROM disk.{t}")
            conn.commit()
            conn.execute("DETACH DATABASE disk")
            backend.build_index()
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(
                f"Failed to copy {source} into memory: {e}", details={"path": str(source)}
            ) from e
        except WordEmbError:
            conn.close()
            raise
        return backend

    def _exists(self, kind: str, name: str) -> bool:
        try:
            row = self.conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = ? AND name = ?", (kind, name)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to inspect schema of {self.db_path}: {e}") from e
        return row is not None

    def has_schema(self) -> bool:
        return self._exists("table", self.table_name)

    def has_index(self) -> bool:
        return self._exists("index", self.index_name)

    def create_schema(self) -> None:
        if self.has_schema():
            raise SchemaError(self.table_name)
        try:
            self.conn.execute(f"CREATE TABLE {self.table_name} (word TEXT UNIQUE, emb BLOB)")
            self.conn.commit()
        except sqlite3.OperationalError as e:
            if "already exists" in str(e):
                raise SchemaError(self.table_name) from e
            raise StorageError(f"Failed to create table {self.table_name}: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create table {self.table_name}: {e}") from e

    def put_many(self, items: Iterable[Tuple[str, bytes]]) -> int:
        rows = list(items)
        if not rows:
            return 0
        try:
            self.conn.executemany(self._insert_sql, rows)
            self.conn.commit()
        except sqlite3.IntegrityError:
            self._rollback()
            self._replay_until_duplicate(rows)
        except sqlite3.Error as e:
            self._rollback()
            raise StorageError(f"Failed to insert {len(rows)} rows into {self.table_name}: {e}") from e
        return len(rows)

    def _replay_until_duplicate(self, rows: List[Tuple[str, bytes]]) -> None:
        """Insert rows one at a time so exactly the rows before the duplicate stay committed."""
        for word, blob in rows:
            try:
                self.conn.execute(self._insert_sql, (word, blob))
            except sqlite3.IntegrityError as e:
                self.conn.commit()
                raise DuplicateKeyError(word, details={"table": self.table_name}) from e
        self.conn.commit()
        raise StorageError(
            f"Batch insert into {self.table_name} violated a constraint that row inserts did not"
        )

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as e:
            logger.error(f"Rollback failed on {self.db_path}: {e}")

    def build_index(self) -> None:
        try:
            self.conn.execute(f"CREATE INDEX {self.index_name} ON {self.table_name}(word)")
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to build index {self.index_name}: {e}") from e

    def get(self, key: str) -> Optional[bytes]:
        try:
            row = self.conn.execute(self._select_sql, (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Lookup of {key!r} failed: {e}", details={"word": key}) from e
        return None if row is None else row[0]

    def keys(self) -> Iterator[str]:
        try:
            cursor = self.conn.execute(f"SELECT word FROM {self.table_name}")
            for row in cursor:
                yield row[0]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list words in {self.table_name}: {e}") from e

    def count(self) -> int:
        try:
            return self.conn.execute(f"SELECT COUNT(*) FROM {self.table_name}").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count rows in {self.table_name}: {e}") from e

    def sample_value(self) -> Optional[bytes]:
        try:
            row = self.conn.execute(f"SELECT emb FROM {self.table_name} LIMIT 1").fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read from {self.table_name}: {e}") from e
        return None if row is None else row[0]

    def close(self) -> None:
        try:
            self.conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to close {self.db_path}: {e}") from e
        logger.debug(f"Closed SQLite embedding store: {self.db_path}")
