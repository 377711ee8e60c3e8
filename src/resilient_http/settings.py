"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-wide default settings and explicit env loading.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from .errors import ConfigurationError
from .runtime.contracts import FetchConfig
from .types import ResponseType

T = TypeVar("T")


def _env_first(*names: str, default: str | None = None) -> str | None:
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _env_number(name: str, default: str, cast: Callable[[str], T]) -> T:
    raw = _env_first(name, default=default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e


def _parse_codes(raw: str) -> frozenset[int]:
    return frozenset(int(part) for part in raw.split(",") if part.strip())


def _parse_timeout(raw: str) -> float | None:
    return None if raw.lower() == "none" else float(raw)


@dataclass(frozen=True, slots=True)
class FetchSettings:
    """Explicit settings feeding the lowest-priority config layer."""

    max_retries: int = 3
    initial_backoff_s: float = 0.5
    max_backoff_s: float = 10.0
    backoff_factor: float = 2.0
    retry_on_errors: frozenset[int] = frozenset({404, 500})
    response_type: ResponseType = "auto"
    cache_ttl_s: float = 900.0
    throttle_s: float = 0.0
    debounce_s: float = 0.0
    timeout_s: float | None = 30.0

    cache_backend: str = "inmemory"
    cache_path: str | None = None
    redis_url: str | None = None

    @staticmethod
    def from_env() -> "FetchSettings":
        """Load settings from `RESILIENT_HTTP_*` environment variables."""
        return FetchSettings(
            max_retries=_env_number("RESILIENT_HTTP_MAX_RETRIES", "3", int),
            initial_backoff_s=_env_number("RESILIENT_HTTP_INITIAL_BACKOFF_S", "0.5", float),
            max_backoff_s=_env_number("RESILIENT_HTTP_MAX_BACKOFF_S", "10", float),
            backoff_factor=_env_number("RESILIENT_HTTP_BACKOFF_FACTOR", "2", float),
            retry_on_errors=_env_number(
                "RESILIENT_HTTP_RETRY_ON_ERRORS", "404,500", _parse_codes
            ),
            response_type=_env_first("RESILIENT_HTTP_RESPONSE_TYPE", default="auto"),
            cache_ttl_s=_env_number("RESILIENT_HTTP_CACHE_TTL_S", "900", float),
            throttle_s=_env_number("RESILIENT_HTTP_THROTTLE_S", "0", float),
            debounce_s=_env_number("RESILIENT_HTTP_DEBOUNCE_S", "0", float),
            timeout_s=_env_number("RESILIENT_HTTP_TIMEOUT_S", "30", _parse_timeout),
            cache_backend=_env_first("RESILIENT_HTTP_CACHE_BACKEND", default="inmemory"),
            cache_path=_env_first("RESILIENT_HTTP_CACHE_PATH"),
            redis_url=_env_first("RESILIENT_HTTP_REDIS_URL", "REDIS_URL"),
        )

    def to_config(self) -> FetchConfig:
        """Adapt settings into the process-default `FetchConfig`."""
        return FetchConfig(
            max_retries=self.max_retries,
            initial_backoff_s=self.initial_backoff_s,
            max_backoff_s=self.max_backoff_s,
            backoff_factor=self.backoff_factor,
            retry_on_errors=self.retry_on_errors,
            response_type=self.response_type,
            cache_ttl_s=self.cache_ttl_s,
            throttle_s=self.throttle_s,
            debounce_s=self.debounce_s,
        )

    def cache_backend_options(self) -> dict[str, str]:
        backend = self.cache_backend.strip().lower()
        if backend == "sqlite" and self.cache_path:
            return {"path": self.cache_path}
        if backend == "redis" and self.redis_url:
            return {"url": self.redis_url}
        return {}
