"""Persistent key/value storage for the auth token and cached user."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from .schema import ensure_schema

DEFAULT_DB_PATH = "~/.config/nutricart/storage.db"


class LocalStorage:
    """Manages the local_storage table.

    Values are strings; ``get_json``/``set_json`` handle JSON-encoded entries.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get_item(self, key: str) -> str | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT value FROM local_storage WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO local_storage (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = datetime('now', 'localtime')""",
            (key, value),
        )
        conn.commit()

    def remove_item(self, key: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
        conn.commit()

    def get_json(self, key: str) -> Any:
        """Return the decoded JSON value, or None if missing.

        Raises:
            ValueError: If the stored value is not valid JSON.
        """
        raw = self.get_item(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))

    def keys(self) -> list[str]:
        conn = self._get_conn()
        rows = conn.execute("SELECT key FROM local_storage ORDER BY key").fetchall()
        return [r["key"] for r in rows]
