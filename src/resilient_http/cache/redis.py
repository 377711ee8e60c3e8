"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/redis.py.
"""

from __future__ import annotations

import json
import math
import time
from typing import Any

from redis.exceptions import RedisError

from ..errors import StoreUnavailable
from .base import CacheEntry, EntryPredicate


class RedisKeyValueBackend:
    """Redis-backed store for deployments sharing one cache server."""

    backend_id = "redis"

    def __init__(self, redis_client: Any, *, prefix: str = "resilient_http:cache") -> None:
        self._redis = redis_client
        self._prefix = prefix.rstrip(":")

    def _row_key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def _strip(self, row_key: str | bytes) -> str:
        if isinstance(row_key, bytes):
            row_key = row_key.decode("utf-8")
        return row_key[len(self._prefix) + 1 :]

    @staticmethod
    def _decode(key: str, blob: str | bytes | None) -> CacheEntry | None:
        if blob is None:
            return None
        try:
            row = json.loads(blob)
        except ValueError:
            return None
        if not isinstance(row, dict) or "expires_at" not in row:
            return None
        return CacheEntry(
            key=key,
            value=row.get("value"),
            expires_at_s=float(row["expires_at"]),
        )

    async def open(self) -> None:
        try:
            await self._redis.ping()
        except (RedisError, OSError) as e:
            raise StoreUnavailable(f"Redis cache unreachable: {e}") from e

    async def get(self, key: str) -> CacheEntry | None:
        try:
            blob = await self._redis.get(self._row_key(key))
        except RedisError as e:
            raise StoreUnavailable(f"Redis get failed: {e}") from e
        return self._decode(key, blob)

    async def put(self, entry: CacheEntry) -> None:
        payload = {"value": entry.value, "expires_at": entry.expires_at_s}
        ttl_ms = max(1, math.ceil((entry.expires_at_s - time.time()) * 1000))
        try:
            await self._redis.set(
                self._row_key(entry.key),
                json.dumps(payload, ensure_ascii=True),
                px=ttl_ms,
            )
        except RedisError as e:
            raise StoreUnavailable(f"Redis set failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._row_key(key))
        except RedisError as e:
            raise StoreUnavailable(f"Redis delete failed: {e}") from e

    async def _row_keys(self) -> list[str]:
        keys = [key async for key in self._redis.scan_iter(match=f"{self._prefix}:*")]
        return sorted(self._strip(key) for key in keys)

    async def clear(self) -> None:
        try:
            keys = await self._row_keys()
            if keys:
                await self._redis.delete(*(self._row_key(key) for key in keys))
        except RedisError as e:
            raise StoreUnavailable(f"Redis clear failed: {e}") from e

    async def scan(self) -> list[CacheEntry]:
        try:
            out: list[CacheEntry] = []
            for key in await self._row_keys():
                entry = self._decode(key, await self._redis.get(self._row_key(key)))
                if entry is not None:
                    out.append(entry)
            return out
        except RedisError as e:
            raise StoreUnavailable(f"Redis scan failed: {e}") from e

    async def delete_matching(self, predicate: EntryPredicate) -> int:
        doomed = [entry.key for entry in await self.scan() if predicate(entry)]
        if not doomed:
            return 0
        try:
            await self._redis.delete(*(self._row_key(key) for key in doomed))
        except RedisError as e:
            raise StoreUnavailable(f"Redis delete failed: {e}") from e
        return len(doomed)

    async def close(self) -> None:
        close = getattr(self._redis, "aclose", None)
        if close is not None:
            await close()
