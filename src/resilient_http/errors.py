"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for resilient request execution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import HttpResponse


class ResilientHttpError(Exception):
    """Base error for all resilient-http failures."""


class ConfigurationError(ResilientHttpError):
    """Raised when a config layer carries unknown or invalid values."""


class TransportFailure(ResilientHttpError):
    """Network-level failure raised by the transport call itself."""


class RetryableStatusFailure(ResilientHttpError):
    """Response status listed in `retry_on_errors`."""

    def __init__(self, status: int, response: "HttpResponse | None" = None) -> None:
        super().__init__(f"HTTP error! status: {status}")
        self.status = status
        self.response = response


class ResponseFormatError(ResilientHttpError):
    """Response body could not be decoded into the requested shape."""


class MaxRetriesExceeded(ResilientHttpError):
    """Terminal error after every configured attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Max retries exceeded after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class StoreUnavailable(ResilientHttpError):
    """Persistent store missing or failing; absorbed by the cache store."""


class CacheBackendError(ResilientHttpError):
    """Raised when cache backend resolution fails."""


class ClientRegistryError(ResilientHttpError):
    """Raised when named client registration or lookup fails."""
