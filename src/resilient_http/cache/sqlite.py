"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

SQLite-backed key/value store for persistent response caching.

Uses the built-in sqlite3 module; each call runs on a worker thread under a
single lock so every operation is one transaction.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from ..errors import StoreUnavailable
from .base import CacheEntry, EntryPredicate

logger = logging.getLogger("resilient_http.cache.sqlite")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at REAL NOT NULL
)
"""


class SQLiteKeyValueBackend:
    """Persistent backend stored in one SQLite file."""

    backend_id = "sqlite"

    def __init__(self, path: str | Path = ":memory:", *, timeout_s: float = 5.0) -> None:
        self._path = str(path)
        self._timeout_s = timeout_s
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            if self._path != ":memory:" and not self._path.startswith("file:"):
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                self._path,
                timeout=self._timeout_s,
                check_same_thread=False,
                uri=self._path.startswith("file:"),
            )
            with conn:
                conn.execute(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Failed to open SQLite cache at {self._path}: {e}") from e
        self._conn = conn
        return conn

    def _run(self, fn, *args: Any) -> Any:
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    return fn(conn, *args)
            except sqlite3.Error as e:
                raise StoreUnavailable(f"SQLite cache operation failed: {e}") from e

    async def _call(self, fn, *args: Any) -> Any:
        return await asyncio.to_thread(self._run, fn, *args)

    @staticmethod
    def _row_to_entry(row: tuple[str, str, float]) -> CacheEntry | None:
        key, blob, expires_at = row
        try:
            value = json.loads(blob)
        except ValueError:
            logger.warning("Ignoring undecodable SQLite cache row for key %r", key)
            return None
        return CacheEntry(key=key, value=value, expires_at_s=float(expires_at))

    async def open(self) -> None:
        def _noop(conn: sqlite3.Connection) -> None:
            _ = conn

        await self._call(_noop)

    async def get(self, key: str) -> CacheEntry | None:
        def _get(conn: sqlite3.Connection, key: str) -> CacheEntry | None:
            row = conn.execute(
                "SELECT key, value, expires_at FROM cache WHERE key = ?", (key,)
            ).fetchone()
            return None if row is None else self._row_to_entry(row)

        return await self._call(_get, key)

    async def put(self, entry: CacheEntry) -> None:
        blob = json.dumps(entry.value, ensure_ascii=False, separators=(",", ":"))

        def _put(conn: sqlite3.Connection) -> None:
            conn.execute(
                "INSERT OR REPLACE INTO cache (key, value, expires_at) VALUES (?, ?, ?)",
                (entry.key, blob, entry.expires_at_s),
            )

        await self._call(_put)

    async def delete(self, key: str) -> None:
        def _delete(conn: sqlite3.Connection, key: str) -> None:
            conn.execute("DELETE FROM cache WHERE key = ?", (key,))

        await self._call(_delete, key)

    async def clear(self) -> None:
        def _clear(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM cache")

        await self._call(_clear)

    async def scan(self) -> list[CacheEntry]:
        def _scan(conn: sqlite3.Connection) -> list[CacheEntry]:
            rows = conn.execute(
                "SELECT key, value, expires_at FROM cache ORDER BY key"
            ).fetchall()
            entries = (self._row_to_entry(row) for row in rows)
            return [entry for entry in entries if entry is not None]

        return await self._call(_scan)

    async def delete_matching(self, predicate: EntryPredicate) -> int:
        def _delete_matching(conn: sqlite3.Connection) -> int:
            rows = conn.execute(
                "SELECT key, value, expires_at FROM cache ORDER BY key"
            ).fetchall()
            doomed = []
            for row in rows:
                entry = self._row_to_entry(row)
                # Undecodable rows are always removed.
                if entry is None or predicate(entry):
                    doomed.append((row[0],))
            conn.executemany("DELETE FROM cache WHERE key = ?", doomed)
            return len(doomed)

        return await self._call(_delete_matching)

    async def close(self) -> None:
        def _close() -> None:
            with self._lock:
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None

        await asyncio.to_thread(_close)
