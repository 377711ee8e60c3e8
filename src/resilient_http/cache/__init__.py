"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheEntry, KeyValueBackend
from .inmemory import InMemoryKeyValueBackend
from .redis import RedisKeyValueBackend
from .registry import (
    create_cache_backend,
    list_cache_backends,
    register_cache_backend,
)
from .sqlite import SQLiteKeyValueBackend
from .store import DEFAULT_TTL_S, CacheStore

__all__ = [
    "CacheEntry",
    "KeyValueBackend",
    "InMemoryKeyValueBackend",
    "SQLiteKeyValueBackend",
    "RedisKeyValueBackend",
    "CacheStore",
    "DEFAULT_TTL_S",
    "register_cache_backend",
    "create_cache_backend",
    "list_cache_backends",
]
