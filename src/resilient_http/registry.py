"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Explicit registry of shared clients keyed by name.
"""

from __future__ import annotations

from threading import Lock

from .client import ResilientHttpClient
from .errors import ClientRegistryError

_REGISTRY: dict[str, ResilientHttpClient] = {}
_LOCK = Lock()


def _normalize(name: str) -> str:
    key = name.strip().lower()
    if not key:
        raise ClientRegistryError("Client name must be non-empty")
    return key


def register_client(
    name: str,
    client: ResilientHttpClient,
    *,
    overwrite: bool = False,
) -> None:
    """Register one client under `name`."""
    key = _normalize(name)
    with _LOCK:
        if key in _REGISTRY and not overwrite:
            raise ClientRegistryError(f"Client already registered: {key}")
        _REGISTRY[key] = client


def get_client(name: str) -> ResilientHttpClient:
    key = _normalize(name)
    with _LOCK:
        client = _REGISTRY.get(key)
    if client is None:
        raise ClientRegistryError(f"Unknown client '{name}'")
    return client


def unregister_client(name: str) -> ResilientHttpClient | None:
    """Drop a client; the caller owns closing it."""
    with _LOCK:
        return _REGISTRY.pop(_normalize(name), None)


def list_clients() -> list[str]:
    """List registered client names."""
    with _LOCK:
        return sorted(_REGISTRY.keys())
