"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .base import CacheEntry, EntryPredicate, KeyValueBackend


@dataclass(slots=True)
class InMemoryKeyValueBackend(KeyValueBackend):
    """Process-local backend suitable for development/test workloads."""

    backend_id: str = "inmemory"
    _rows: dict[str, CacheEntry] = field(default_factory=dict, init=False, repr=False)

    async def open(self) -> None:
        return None

    async def get(self, key: str) -> CacheEntry | None:
        return self._rows.get(key)

    async def put(self, entry: CacheEntry) -> None:
        self._rows[entry.key] = entry

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def clear(self) -> None:
        self._rows.clear()

    async def scan(self) -> list[CacheEntry]:
        return [self._rows[key] for key in sorted(self._rows)]

    async def delete_matching(self, predicate: EntryPredicate) -> int:
        doomed = [key for key, row in self._rows.items() if predicate(row)]
        for key in doomed:
            del self._rows[key]
        return len(doomed)

    async def close(self) -> None:
        return None
