"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: client.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from .cache.base import KeyValueBackend
from .cache.registry import create_cache_backend
from .cache.store import CacheStore
from .errors import ResponseFormatError
from .hooks import resolve_hook_result
from .runtime.contracts import FetchConfig, merge_config
from .runtime.retry import RetryExecutor, SleepFn
from .runtime.scheduler import RequestScheduler
from .settings import FetchSettings
from .transport.contracts import HttpTransport
from .transport.urllib_transport import UrllibTransport
from .types import RequestOptions

logger = logging.getLogger("resilient_http.client")


class ResilientHttpClient:
    """Cache-first, shaped, retrying request client with explicit lifetime."""

    def __init__(
        self,
        transport: HttpTransport | None = None,
        *,
        settings: FetchSettings | None = None,
        defaults: Mapping[str, Any] | None = None,
        cache_backend: str | KeyValueBackend | None = None,
        cache: CacheStore | None = None,
        sleep: SleepFn | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self._base_config = self.settings.to_config()
        self._instance_config = merge_config(
            self._base_config, dict(defaults or {})
        )

        if cache is None:
            if cache_backend is None:
                cache_backend = self.settings.cache_backend
                backend_options = self.settings.cache_backend_options()
            else:
                backend_options = {}
            cache = CacheStore(
                create_cache_backend(cache_backend, **backend_options),
                default_ttl_s=self.settings.cache_ttl_s,
            )
        self._cache = cache
        self._transport = transport or UrllibTransport()
        self._executor = RetryExecutor(self._transport, sleep=sleep)
        self._scheduler = RequestScheduler(self._executor, clock=clock, sleep=sleep)

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def scheduler(self) -> RequestScheduler:
        return self._scheduler

    def effective_config(self, **overrides: Any) -> FetchConfig:
        """Merge process defaults < instance defaults < per-call overrides."""
        return merge_config(self._instance_config, overrides)

    def _request_options(self, options: RequestOptions | Mapping[str, Any] | None) -> RequestOptions:
        if isinstance(options, RequestOptions):
            return options
        fields = dict(options or {})
        fields.setdefault("timeout_s", self.settings.timeout_s)
        return RequestOptions(**fields)

    @staticmethod
    def _validate(value: Any, response_model: type[BaseModel]) -> BaseModel:
        if isinstance(value, response_model):
            return value
        try:
            return response_model.model_validate(value)
        except ValidationError as e:
            raise ResponseFormatError(
                f"Response does not match {response_model.__name__}: {e}"
            ) from e

    async def fetch(
        self,
        address: str,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: type[BaseModel] | None = None,
        **overrides: Any,
    ) -> Any:
        """
        Fetch one address through cache, call shaping and retries.

        Args:
            address: Target URL handed to the transport.
            options: Request method/headers/body/timeout.
            response_model: Optional pydantic model validating the decoded body.
            **overrides: Per-call `FetchConfig` fields.

        Returns:
            Decoded body (JSON value or text), the validated model, or the
            replacement returned by `hooks.on_success`.

        Raises:
            MaxRetriesExceeded: Retries exhausted.
            ResponseFormatError: Body could not be decoded or validated.
        """
        config = self.effective_config(**overrides)
        request = self._request_options(options)

        cache_key = config.cache_key or address
        if config.with_cache:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache hit for %s", cache_key)
                if response_model is not None:
                    return self._validate(cached, response_model)
                return cached

        outcome = await self._scheduler.schedule(address, request, config)

        value = outcome.value
        if response_model is not None:
            value = self._validate(value, response_model)

        replacement = await resolve_hook_result(
            config.hooks.on_success(value, outcome.response)
        )
        if replacement is not None:
            value = replacement

        if config.with_cache:
            stored = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
            await self._cache.set(cache_key, stored, config.cache_ttl_s)
        return value

    def fetch_sync(
        self,
        address: str,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: type[BaseModel] | None = None,
        **overrides: Any,
    ) -> Any:
        """Synchronous wrapper around `fetch` for scripts without a loop."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(
                self.fetch(address, options, response_model=response_model, **overrides)
            )
        raise RuntimeError("fetch_sync() cannot be called from a running event loop")

    async def invalidate_cache(self, fragment: str) -> int:
        return await self._cache.invalidate_by_key_substring(fragment)

    async def clear_cache(self) -> None:
        await self._cache.clear_all()

    async def aclose(self) -> None:
        await self._scheduler.aclose()
        await self._cache.aclose()

    async def __aenter__(self) -> "ResilientHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
