"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Hook capability set invoked around each request attempt.

Hooks are modeled as one object with four methods. ``NoopHooks`` is the
"no hook" variant; ``CallableHooks`` adapts loose functions. Every method may
return a plain value or an awaitable.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

from .types import HttpResponse, RequestOptions

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryOverride:
    """Replacement address/options for a single retry attempt."""

    address: str | None = None
    options: RequestOptions | None = None


@runtime_checkable
class FetchHooks(Protocol):
    """Observation and override points around request execution."""

    def on_retry(
        self,
        attempt: int,
        address: str,
        options: RequestOptions,
    ) -> RetryOverride | None | Awaitable[RetryOverride | None]: ...

    def on_http_response(self, response: HttpResponse) -> None | Awaitable[None]: ...

    def on_success(self, value: Any, response: HttpResponse) -> Any: ...

    def on_error(
        self,
        error: Exception,
        attempt: int,
    ) -> Exception | None | Awaitable[Exception | None]: ...


class NoopHooks:
    """Hook set that observes nothing and overrides nothing."""

    def on_retry(self, attempt: int, address: str, options: RequestOptions) -> None:
        _ = attempt
        _ = address
        _ = options
        return None

    def on_http_response(self, response: HttpResponse) -> None:
        _ = response

    def on_success(self, value: Any, response: HttpResponse) -> None:
        _ = value
        _ = response
        return None

    def on_error(self, error: Exception, attempt: int) -> None:
        _ = error
        _ = attempt
        return None


class CallableHooks(NoopHooks):
    """Adapt individual callables into the hook capability set."""

    def __init__(
        self,
        *,
        on_retry: Callable[..., Any] | None = None,
        on_http_response: Callable[..., Any] | None = None,
        on_success: Callable[..., Any] | None = None,
        on_error: Callable[..., Any] | None = None,
    ) -> None:
        self._on_retry = on_retry
        self._on_http_response = on_http_response
        self._on_success = on_success
        self._on_error = on_error

    def on_retry(self, attempt: int, address: str, options: RequestOptions) -> Any:
        if self._on_retry is None:
            return None
        return self._on_retry(attempt, address, options)

    def on_http_response(self, response: HttpResponse) -> Any:
        if self._on_http_response is None:
            return None
        return self._on_http_response(response)

    def on_success(self, value: Any, response: HttpResponse) -> Any:
        if self._on_success is None:
            return None
        return self._on_success(value, response)

    def on_error(self, error: Exception, attempt: int) -> Any:
        if self._on_error is None:
            return None
        return self._on_error(error, attempt)


async def resolve_hook_result(result: T | Awaitable[T]) -> T:
    """Await hook results that are awaitable, pass plain values through."""
    if inspect.isawaitable(result):
        return await result
    return result
