"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..types import JSONValue


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached value row with expiration metadata."""
    key: str
    value: JSONValue
    expires_at_s: float

    def is_expired(self, now_s: float) -> bool:
        return self.expires_at_s <= now_s


EntryPredicate = Callable[[CacheEntry], bool]


class KeyValueBackend(Protocol):
    """Persistent keyed store consumed by `CacheStore`."""
    backend_id: str

    async def open(self) -> None: ...

    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, entry: CacheEntry) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def scan(self) -> list[CacheEntry]: ...

    async def delete_matching(self, predicate: EntryPredicate) -> int: ...

    async def close(self) -> None: ...
