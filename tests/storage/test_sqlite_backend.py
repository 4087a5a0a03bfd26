"""Tests for the SQLite key-value backend."""

import sqlite3

import pytest

from wordemb.storage.sqlite_backend import SqliteBackend
from wordemb.utils.exceptions import (
    ConfigurationError,
    DuplicateKeyError,
    SchemaError,
    StorageError,
    StoreStateError,
)


@pytest.fixture
def backend():
    b = SqliteBackend()
    yield b
    b.close()


def _built(path):
    b = SqliteBackend(path)
    b.create_schema()
    b.put_many([("a", b"\x00\x00\x00\x01"), ("b", b"\x00\x00\x00\x02")])
    b.build_index()
    b.close()
    return path


def test_schema_lifecycle(backend):
    assert not backend.has_schema()
    backend.create_schema()
    assert backend.has_schema()
    assert not backend.has_index()
    backend.build_index()
    assert backend.has_index()


def test_create_schema_twice_is_schema_error(backend):
    backend.create_schema()
    with pytest.raises(SchemaError) as exc:
        backend.create_schema()
    assert exc.value.table_name == "fasttext"
    assert exc.value.error_code == "SCHEMA_EXISTS"


def test_put_get_count_keys(backend):
    backend.create_schema()
    assert backend.put_many([("x", b"1234"), ("y", b"5678")]) == 2
    assert backend.put_many([]) == 0
    assert backend.get("x") == b"1234"
    assert backend.get("missing") is None
    assert backend.count() == 2
    assert sorted(backend.keys()) == ["x", "y"]
    assert backend.sample_value() in (b"1234", b"5678")


def test_sample_value_of_empty_table(backend):
    backend.create_schema()
    assert backend.sample_value() is None


def test_duplicate_inside_batch_keeps_prefix(backend):
    backend.create_schema()
    with pytest.raises(DuplicateKeyError) as exc:
        backend.put_many([("a", b"1111"), ("b", b"2222"), ("a", b"3333"), ("c", b"4444")])
    assert exc.value.word == "a"
    assert exc.value.error_code == "DUPLICATE_KEY"
    assert isinstance(exc.value, StorageError)
    assert backend.count() == 2
    assert backend.get("a") == b"1111"
    assert backend.get("c") is None


def test_duplicate_across_batches(backend):
    backend.create_schema()
    backend.put_many([("a", b"1111")])
    with pytest.raises(DuplicateKeyError):
        backend.put_many([("b", b"2222"), ("a", b"3333")])
    assert sorted(backend.keys()) == ["a", "b"]


def test_custom_table_and_index_names(tmp_path):
    path = tmp_path / "custom.db"
    b = SqliteBackend(path, table_name="vectors", index_name="vectors_word")
    b.create_schema()
    b.build_index()
    b.close()
    conn = sqlite3.connect(str(path))
    names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master")}
    conn.close()
    assert {"vectors", "vectors_word"} <= names


@pytest.mark.parametrize("name", ["1table", "drop table;", "a-b", "word emb"])
def test_invalid_identifier_is_rejected(name):
    with pytest.raises(ConfigurationError):
        SqliteBackend(table_name=name)


def test_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "store.db"
    SqliteBackend(path).close()
    assert path.exists()


def test_read_only_requires_existing_file(tmp_path):
    with pytest.raises(StorageError):
        SqliteBackend(tmp_path / "missing.db", read_only=True)


def test_read_only_rejects_writes(tmp_path):
    path = _built(tmp_path / "ro.db")
    b = SqliteBackend(path, read_only=True)
    try:
        assert b.get("a") == b"\x00\x00\x00\x01"
        with pytest.raises(StorageError):
            b.put_many([("c", b"0000")])
    finally:
        b.close()


def test_mirror_copies_rows_and_rebuilds_index(tmp_path):
    path = _built(tmp_path / "disk.db")
    mirror = SqliteBackend.mirror_of(path)
    try:
        assert mirror.has_schema()
        assert mirror.has_index()
        assert mirror.count() == 2
        assert mirror.get("b") == b"\x00\x00\x00\x02"
    finally:
        mirror.close()


def test_mirror_of_missing_file(tmp_path):
    with pytest.raises(StorageError):
        SqliteBackend.mirror_of(tmp_path / "missing.db")


def test_mirror_of_uninitialized_store(tmp_path):
    path = tmp_path / "empty.db"
    SqliteBackend(path).close()
    with pytest.raises(StoreStateError) as exc:
        SqliteBackend.mirror_of(path)
    assert exc.value.state == "uninitialized"


def test_mirror_of_unfinished_store(tmp_path):
    path = tmp_path / "partial.db"
    b = SqliteBackend(path)
    b.create_schema()
    b.put_many([("a", b"1111")])
    b.close()
    with pytest.raises(StoreStateError):
        SqliteBackend.mirror_of(path)


@pytest.fixture
def opened_connections(monkeypatch):
    """Record every connection sqlite3.connect hands out."""
    opened = []
    real_connect = sqlite3.connect

    def tracking_connect(*args, **kwargs):
        conn = real_connect(*args, **kwargs)
        opened.append(conn)
        return conn

    monkeypatch.setattr(sqlite3, "connect", tracking_connect)
    return opened


def _assert_closed(conn):
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


def test_mirror_closes_connection_when_indexing_fails(tmp_path, monkeypatch, opened_connections):
    path = _built(tmp_path / "disk.db")
    opened_connections.clear()

    def failing_build_index(self):
        raise StorageError("index build failed")

    monkeypatch.setattr(SqliteBackend, "build_index", failing_build_index)
    with pytest.raises(StorageError):
        SqliteBackend.mirror_of(path)
    assert len(opened_connections) == 1
    _assert_closed(opened_connections[0])


def test_mirror_closes_connection_on_bad_table_name(tmp_path, opened_connections):
    path = _built(tmp_path / "disk.db")
    opened_connections.clear()
    with pytest.raises(ConfigurationError):
        SqliteBackend.mirror_of(path, table_name="bad name")
    assert len(opened_connections) == 1
    _assert_closed(opened_connections[0])
