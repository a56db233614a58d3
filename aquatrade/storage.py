"""
Persistence port for the record store.

The store only talks to ``StoragePort``: ``load(key)`` returns the raw bytes saved
under a key (or None), ``save(key, payload)`` writes them or raises StorageError.
"""
from __future__ import annotations

import sqlite3
from typing import Optional, Protocol

from aquatrade.db import ensure_schema, q, x
from aquatrade.utils import iso_now


class StorageError(Exception):
    """Raised when a collection could not be written."""


class StoragePort(Protocol):
    def load(self, key: str) -> Optional[bytes]: ...

    def save(self, key: str, payload: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[dict[str, bytes]] = None) -> None:
        self.data: dict[str, bytes] = dict(initial or {})
        self.writes = 0

    def load(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def save(self, key: str, payload: bytes) -> None:
        self.data[key] = bytes(payload)
        self.writes += 1

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteStorage:
    """Key-value rows in the app database (table kv_store)."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        ensure_schema(conn)

    def load(self, key: str) -> Optional[bytes]:
        rows = q(self.conn, "SELECT value FROM kv_store WHERE key=?", (key,))
        if not rows:
            return None
        value = rows[0]["value"]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def save(self, key: str, payload: bytes) -> None:
        try:
            x(
                self.conn,
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, bytes(payload), iso_now()),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Could not save '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            x(self.conn, "DELETE FROM kv_store WHERE key=?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Could not remove '{key}': {e}") from e

    def keys(self) -> list[str]:
        return [str(r["key"]) for r in q(self.conn, "SELECT key FROM kv_store ORDER BY key")]
