"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport protocol consumed by the retry executor.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..types import HttpResponse, RequestOptions


@runtime_checkable
class HttpTransport(Protocol):
    """
    Send one request and return its status/headers/body triple.

    Implementations must be safe to call repeatedly for retries. Error
    statuses are returned as responses; only network-level failures raise.
    """

    async def send(self, address: str, options: RequestOptions) -> HttpResponse: ...
