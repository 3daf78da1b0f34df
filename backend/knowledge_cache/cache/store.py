"""Key/value stores holding the help center snapshot."""

from __future__ import annotations

import asyncio
import copy
import sqlite3
import threading
from typing import Any, Protocol

import orjson

from knowledge_cache.db.sqlite import SQLiteDatabase
from knowledge_cache.utils.time import utc_now


class CacheStoreError(Exception):
    """The backing store could not be read or written."""


class KeyValueStore(Protocol):
    """Minimal interface of the external cache service.

    Values are JSON-compatible; a ``set`` replaces the whole value of a key.
    """

    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """In-process store; owned by whoever constructs it."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class SQLiteStore:
    """Store persisted in a single SQLite table, values encoded with orjson.

    Queries run in a worker thread so large snapshot writes do not block the
    event loop; a lock keeps one thread on the shared connection at a time.
    """

    def __init__(self, database: SQLiteDatabase) -> None:
        self.db = database
        self._schema_ready = False
        self._lock = threading.Lock()

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            self.db.ensure_schema()
            self._schema_ready = True

    def _read(self, key: str) -> bytes | None:
        with self._lock:
            self._ensure_schema()
            row = self.db.execute("SELECT value FROM kv_entries WHERE key = ?", [key]).fetchone()
        return None if row is None else row["value"]

    def _write(self, key: str, payload: bytes, updated_at: int) -> None:
        with self._lock:
            self._ensure_schema()
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    [key, payload, updated_at],
                )

    async def get(self, key: str) -> Any | None:
        try:
            raw = await asyncio.to_thread(self._read, key)
        except sqlite3.Error as exc:
            raise CacheStoreError(f"read of {key!r} failed: {exc}") from exc
        if raw is None:
            return None
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CacheStoreError(f"stored value for {key!r} is corrupt") from exc

    async def set(self, key: str, value: Any) -> None:
        payload = orjson.dumps(value)
        updated_at = int(utc_now().timestamp() * 1000)
        try:
            await asyncio.to_thread(self._write, key, payload, updated_at)
        except sqlite3.Error as exc:
            raise CacheStoreError(f"write of {key!r} failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self.db.close()


__all__ = ["CacheStoreError", "KeyValueStore", "MemoryStore", "SQLiteStore"]
