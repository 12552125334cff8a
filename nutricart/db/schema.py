"""SQLite bootstrap for the client-side storage database."""

from __future__ import annotations

import sqlite3
from pathlib import Path

# Each entry upgrades the database from version N to N+1
_MIGRATIONS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS local_storage (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
    );
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER NOT NULL
    );
    """,
]

_SCHEMA_VERSION = len(_MIGRATIONS)


def _open(db_path: str | Path) -> sqlite3.Connection:
    if str(db_path) == ":memory:":
        return sqlite3.connect(":memory:")
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def _stored_version(conn: sqlite3.Connection) -> int:
    try:
        row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row["version"] or 0


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open the storage database and apply any pending migrations.

    ``":memory:"`` gives a throwaway database, which the tests use.
    Rows come back as ``sqlite3.Row``.
    """
    conn = _open(db_path)
    conn.row_factory = sqlite3.Row

    version = _stored_version(conn)
    if version >= _SCHEMA_VERSION:
        return conn

    for script in _MIGRATIONS[version:]:
        conn.executescript(script)
    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,))
    conn.commit()
    return conn
