"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed effective configuration for one resilient fetch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

from ..errors import ConfigurationError
from ..hooks import FetchHooks, NoopHooks
from ..types import ResponseType

_RESPONSE_TYPES = ("json", "text", "auto")


@dataclass(frozen=True, slots=True)
class FetchConfig:
    """Immutable snapshot of every option that shapes one fetch."""

    max_retries: int = 3
    initial_backoff_s: float = 0.5
    max_backoff_s: float = 10.0
    backoff_factor: float = 2.0
    retry_on_errors: frozenset[int] = frozenset({404, 500})
    response_type: ResponseType = "auto"
    with_cache: bool = False
    cache_ttl_s: float = 900.0
    cache_key: str | None = None
    throttle_s: float = 0.0
    debounce_s: float = 0.0
    hooks: FetchHooks = field(default_factory=NoopHooks)

    def __post_init__(self) -> None:
        if not isinstance(self.retry_on_errors, frozenset):
            object.__setattr__(
                self,
                "retry_on_errors",
                frozenset(int(code) for code in self.retry_on_errors),
            )
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be >= 1")
        for name in (
            "initial_backoff_s",
            "max_backoff_s",
            "cache_ttl_s",
            "throttle_s",
            "debounce_s",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        if self.backoff_factor < 1:
            raise ConfigurationError("backoff_factor must be >= 1")
        if self.response_type not in _RESPONSE_TYPES:
            raise ConfigurationError(
                f"response_type must be one of {', '.join(_RESPONSE_TYPES)}"
            )

    def backoff_delay(self, failed_attempts: int) -> float:
        """Delay before the attempt following `failed_attempts` failures."""
        exponent = max(0, failed_attempts - 1)
        return min(
            self.initial_backoff_s * (self.backoff_factor**exponent),
            self.max_backoff_s,
        )

    @property
    def policy(self) -> str:
        if self.throttle_s > 0:
            return "throttle"
        if self.debounce_s > 0:
            return "debounce"
        return "immediate"


CONFIG_FIELDS = frozenset(f.name for f in fields(FetchConfig))


def _normalize_layer(layer: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(layer) - CONFIG_FIELDS)
    if unknown:
        raise ConfigurationError(f"Unknown fetch option(s): {', '.join(unknown)}")
    out: dict[str, Any] = {}
    for key, value in layer.items():
        if value is None:
            continue
        if key == "retry_on_errors" and isinstance(value, Iterable):
            value = frozenset(int(code) for code in value)
        out[key] = value
    return out


def merge_config(
    base: FetchConfig,
    *layers: Mapping[str, Any] | None,
) -> FetchConfig:
    """
    Merge override layers on top of `base`, later layers winning.

    `None` values inside a layer mean "not set" and never clear a lower layer.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        merged.update(_normalize_layer(layer))
    if not merged:
        return base
    return replace(base, **merged)
