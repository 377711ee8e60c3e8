"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

TTL cache over a pluggable key/value backend.

Expiration is enforced on read: an entry whose `expires_at_s` has passed
reads as absent even while it still sits in the backend. Physical removal
happens in `delete_expired`, which runs once when the backend is first
opened and otherwise only when called explicitly.

A missing backend, or one raising `StoreUnavailable`, turns the store into
a no-op. Callers never see that error.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..errors import StoreUnavailable
from ..types import JSONValue
from .base import CacheEntry, KeyValueBackend

logger = logging.getLogger("resilient_http.cache")

T = TypeVar("T")

DEFAULT_TTL_S = 15 * 60.0


class CacheStore:
    """Persistent key -> (value, expiry) store with lazy expiration."""

    def __init__(
        self,
        backend: KeyValueBackend | None,
        *,
        default_ttl_s: float = DEFAULT_TTL_S,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._backend = backend
        self._default_ttl_s = default_ttl_s
        self._clock = clock or time.time
        self._opened = False
        self._disabled = backend is None
        self._open_lock = asyncio.Lock()

    @property
    def backend(self) -> KeyValueBackend | None:
        return self._backend

    @property
    def available(self) -> bool:
        return not self._disabled

    def _degrade(self, error: StoreUnavailable) -> None:
        if not self._disabled:
            logger.warning("Cache store unavailable, caching disabled: %s", error)
        self._disabled = True

    async def _ready(self) -> KeyValueBackend | None:
        if self._disabled:
            return None
        if self._opened:
            return self._backend
        async with self._open_lock:
            if self._disabled:
                return None
            if not self._opened:
                try:
                    await self._backend.open()
                except StoreUnavailable as e:
                    self._degrade(e)
                    return None
                self._opened = True
                logger.info("Opened %s cache backend", self._backend.backend_id)
                await self._sweep(self._backend)
        return self._backend

    async def _guarded(
        self,
        op: Callable[[KeyValueBackend], Awaitable[T]],
        default: T,
    ) -> T:
        backend = await self._ready()
        if backend is None:
            return default
        try:
            return await op(backend)
        except StoreUnavailable as e:
            self._degrade(e)
            return default

    async def _sweep(self, backend: KeyValueBackend) -> int:
        now = self._clock()
        try:
            removed = await backend.delete_matching(lambda row: row.is_expired(now))
        except StoreUnavailable as e:
            self._degrade(e)
            return 0
        if removed:
            logger.info("Removed %d expired cache entr%s", removed, "y" if removed == 1 else "ies")
        return removed

    async def get(self, key: str) -> Any | None:
        """Return the live value for `key`, or `None` when missing or expired."""
        row = await self._guarded(lambda backend: backend.get(key), None)
        if row is None or row.is_expired(self._clock()):
            return None
        return row.value

    async def set(self, key: str, value: JSONValue, ttl_s: float | None = None) -> None:
        ttl = self._default_ttl_s if ttl_s is None else ttl_s
        entry = CacheEntry(key=key, value=value, expires_at_s=self._clock() + ttl)
        await self._guarded(lambda backend: backend.put(entry), None)

    async def delete(self, key: str) -> None:
        await self._guarded(lambda backend: backend.delete(key), None)

    async def delete_expired(self) -> int:
        """Physically remove every expired entry; returns rows removed."""
        backend = await self._ready()
        if backend is None:
            return 0
        return await self._sweep(backend)

    async def invalidate_by_key_substring(self, fragment: str) -> int:
        """Remove every entry whose key contains `fragment`."""
        removed = await self._guarded(
            lambda backend: backend.delete_matching(lambda row: fragment in row.key),
            0,
        )
        logger.debug("Invalidated %d cache entries matching %r", removed, fragment)
        return removed

    async def clear_all(self) -> None:
        await self._guarded(lambda backend: backend.clear(), None)

    async def aclose(self) -> None:
        if self._backend is None or not self._opened:
            return
        try:
            await self._backend.close()
        except StoreUnavailable as e:
            logger.warning("Cache backend close failed: %s", e)
        self._opened = False
