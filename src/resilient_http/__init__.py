"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Resilient request execution: retries with backoff, throttle/debounce call
shaping and a persistent TTL cache around one transport primitive.
"""

from __future__ import annotations

from .cache import (
    CacheEntry,
    CacheStore,
    InMemoryKeyValueBackend,
    KeyValueBackend,
    RedisKeyValueBackend,
    SQLiteKeyValueBackend,
    create_cache_backend,
    list_cache_backends,
    register_cache_backend,
)
from .client import ResilientHttpClient
from .errors import (
    CacheBackendError,
    ClientRegistryError,
    ConfigurationError,
    MaxRetriesExceeded,
    ResilientHttpError,
    ResponseFormatError,
    RetryableStatusFailure,
    StoreUnavailable,
    TransportFailure,
)
from .hooks import CallableHooks, FetchHooks, NoopHooks, RetryOverride
from .registry import get_client, list_clients, register_client, unregister_client
from .runtime import FetchConfig, RequestScheduler, RetryExecutor, call_key, merge_config
from .settings import FetchSettings
from .transport import HttpTransport, UrllibTransport
from .types import FetchOutcome, HttpResponse, RequestOptions

__all__ = [
    "ResilientHttpClient",
    "FetchConfig",
    "FetchSettings",
    "merge_config",
    "call_key",
    "RetryExecutor",
    "RequestScheduler",
    "CacheStore",
    "CacheEntry",
    "KeyValueBackend",
    "InMemoryKeyValueBackend",
    "SQLiteKeyValueBackend",
    "RedisKeyValueBackend",
    "register_cache_backend",
    "create_cache_backend",
    "list_cache_backends",
    "FetchHooks",
    "NoopHooks",
    "CallableHooks",
    "RetryOverride",
    "HttpTransport",
    "UrllibTransport",
    "HttpResponse",
    "RequestOptions",
    "FetchOutcome",
    "register_client",
    "get_client",
    "unregister_client",
    "list_clients",
    "ResilientHttpError",
    "ConfigurationError",
    "TransportFailure",
    "RetryableStatusFailure",
    "ResponseFormatError",
    "MaxRetriesExceeded",
    "StoreUnavailable",
    "CacheBackendError",
    "ClientRegistryError",
]
