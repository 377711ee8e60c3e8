"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/registry.py.
"""

from __future__ import annotations

from collections.abc import Callable
from threading import Lock
from typing import Any

from ..errors import CacheBackendError
from .base import KeyValueBackend
from .inmemory import InMemoryKeyValueBackend
from .sqlite import SQLiteKeyValueBackend

BackendFactory = Callable[..., "KeyValueBackend | None"]

_REGISTRY: dict[str, BackendFactory] = {}
_LOCK = Lock()


def _redis_backend(
    *,
    redis_client: Any | None = None,
    url: str | None = None,
    prefix: str = "resilient_http:cache",
) -> KeyValueBackend:
    from .redis import RedisKeyValueBackend

    client = redis_client
    if client is None:
        import redis.asyncio as redis

        client = redis.Redis.from_url(url or "redis://localhost:6379/0")
    return RedisKeyValueBackend(client, prefix=prefix)


def _sqlite_backend(*, path: str | None = None, **options: Any) -> KeyValueBackend:
    return SQLiteKeyValueBackend(path or ":memory:", **options)


def _no_backend(**options: Any) -> None:
    _ = options
    return None


def register_cache_backend(
    name: str,
    factory: BackendFactory,
    *,
    overwrite: bool = False,
) -> None:
    """Register one backend factory under `name`."""
    key = name.strip().lower()
    if not key:
        raise CacheBackendError("Cache backend id must be non-empty")

    with _LOCK:
        if key in _REGISTRY and not overwrite:
            raise CacheBackendError(f"Cache backend already registered: {key}")
        _REGISTRY[key] = factory


def create_cache_backend(
    backend: str | KeyValueBackend | None = None,
    **options: Any,
) -> KeyValueBackend | None:
    """
    Resolve a backend from id/instance/default.

    `None` resolves to a fresh in-memory backend. The `none` id resolves to
    no backend at all, which makes the cache store a no-op.
    """
    if backend is None:
        return InMemoryKeyValueBackend()

    if not isinstance(backend, str):
        return backend

    key = backend.strip().lower()
    with _LOCK:
        factory = _REGISTRY.get(key)
    if factory is None:
        raise CacheBackendError(f"Unknown cache backend '{backend}'")
    return factory(**options)


def list_cache_backends() -> list[str]:
    """List registered cache backend ids."""
    with _LOCK:
        return sorted(_REGISTRY.keys())


register_cache_backend("inmemory", lambda **_: InMemoryKeyValueBackend())
register_cache_backend("sqlite", _sqlite_backend)
register_cache_backend("redis", _redis_backend)
register_cache_backend("none", _no_backend)
