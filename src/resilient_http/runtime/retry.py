"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/retry.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..decoding import decode_response
from ..errors import (
    MaxRetriesExceeded,
    ResilientHttpError,
    RetryableStatusFailure,
    TransportFailure,
)
from ..hooks import RetryOverride, resolve_hook_result
from ..transport.contracts import HttpTransport
from ..types import FetchOutcome, HttpResponse, RequestOptions
from .contracts import FetchConfig

logger = logging.getLogger("resilient_http.retry")

SleepFn = Callable[[float], Awaitable[None]]


def classify_error(error: Exception) -> ResilientHttpError:
    """Map raw transport exceptions onto the retryable error taxonomy."""
    if isinstance(error, (TransportFailure, RetryableStatusFailure)):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return TransportFailure(f"Transport timed out: {error}")
    return TransportFailure(str(error) or type(error).__name__)


class RetryExecutor:
    """Issue one logical request, retrying transient failures with backoff."""

    def __init__(self, transport: HttpTransport, *, sleep: SleepFn | None = None) -> None:
        self._transport = transport
        self._sleep = sleep or asyncio.sleep

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    async def _attempt(
        self,
        attempt: int,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> HttpResponse:
        if attempt > 0:
            override = await resolve_hook_result(
                config.hooks.on_retry(attempt, address, options)
            )
            if isinstance(override, RetryOverride):
                address = override.address or address
                options = override.options or options

        try:
            response = await self._transport.send(address, options)
        except Exception as error:
            classified = classify_error(error)
            if classified is error:
                raise
            raise classified from error

        await resolve_hook_result(config.hooks.on_http_response(response))

        if not response.ok and response.status in config.retry_on_errors:
            raise RetryableStatusFailure(response.status, response)
        return response

    async def execute(
        self,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> FetchOutcome:
        """
        Run the attempt loop and return the decoded outcome.

        Non-ok responses whose status is not in `retry_on_errors` are returned
        as successful outcomes. Decode failures propagate without retry.

        Raises:
            MaxRetriesExceeded: Every attempt failed.
            Exception: Replacement error returned by `hooks.on_error`.
        """
        attempt = 0
        while True:
            try:
                response = await self._attempt(attempt, address, options, config)
            except (TransportFailure, RetryableStatusFailure) as error:
                attempt += 1
                replacement = await resolve_hook_result(
                    config.hooks.on_error(error, attempt)
                )
                if replacement is not None:
                    raise replacement from error
                if attempt >= config.max_retries:
                    logger.warning(
                        "Giving up on %s after %d attempt(s): %s",
                        address,
                        attempt,
                        error,
                    )
                    raise MaxRetriesExceeded(attempt, error) from error

                delay_s = config.backoff_delay(attempt)
                logger.warning(
                    "Attempt %d/%d for %s failed (%s); retrying in %.3fs",
                    attempt,
                    config.max_retries,
                    address,
                    error,
                    delay_s,
                )
                await self._sleep(delay_s)
                continue

            value = decode_response(response, config.response_type)
            return FetchOutcome(value=value, response=response, attempts=attempt + 1)
