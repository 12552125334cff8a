"""Tests for the sqlite-backed local storage."""

import pytest

from nutricart.db.local_storage import LocalStorage
from nutricart.db.schema import _SCHEMA_VERSION, ensure_schema


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates the storage and version tables."""
    conn = ensure_schema(tmp_path / "test.db")

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert "local_storage" in table_names
    assert "schema_version" in table_names
    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    """Schema creates parent directories if they don't exist."""
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice doesn't error or duplicate the version row."""
    db_path = tmp_path / "test.db"
    ensure_schema(db_path).close()

    conn = ensure_schema(db_path)
    rows = conn.execute("SELECT version FROM schema_version").fetchall()
    assert [r["version"] for r in rows] == [_SCHEMA_VERSION]
    conn.close()


def test_ensure_schema_wal_mode(tmp_path):
    """Schema sets WAL journal mode."""
    conn = ensure_schema(tmp_path / "test.db")
    assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    conn.close()


def test_in_memory_database():
    """An in-memory database gets the same table."""
    conn = ensure_schema(":memory:")
    info = conn.execute("PRAGMA table_info(local_storage)").fetchall()
    assert {row["name"] for row in info} == {"key", "value", "updated_at"}
    conn.close()


@pytest.fixture
def storage(tmp_path):
    s = LocalStorage(tmp_path / "storage.db")
    yield s
    s.close()


def test_set_and_get_item(storage):
    """Stored values read back; missing keys are None."""
    storage.set_item("nutriCart_token", "abc")
    assert storage.get_item("nutriCart_token") == "abc"
    assert storage.get_item("missing") is None


def test_set_item_overwrites(storage):
    """Setting a key twice keeps one row."""
    storage.set_item("k", "1")
    storage.set_item("k", "2")
    assert storage.get_item("k") == "2"
    assert storage.keys() == ["k"]


def test_remove_item(storage):
    """Removing a key, even a missing one, works."""
    storage.set_item("k", "v")
    storage.remove_item("k")
    storage.remove_item("never-set")
    assert storage.get_item("k") is None


def test_json_values(storage):
    """JSON values round-trip with non-ASCII text."""
    storage.set_json("user", {"id": "u1", "name": "Ānanya"})
    assert storage.get_json("user") == {"id": "u1", "name": "Ānanya"}
    assert storage.get_json("missing") is None


def test_get_json_rejects_garbage(storage):
    """Invalid stored JSON raises ValueError."""
    storage.set_item("user", "{oops")
    with pytest.raises(ValueError):
        storage.get_json("user")


def test_values_survive_reopen(tmp_path):
    """Values persist across connections."""
    path = tmp_path / "storage.db"
    first = LocalStorage(path)
    first.set_item("nutriCart_token", "tok")
    first.close()

    second = LocalStorage(path)
    assert second.get_item("nutriCart_token") == "tok"
    second.close()
