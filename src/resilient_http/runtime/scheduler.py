"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Call shaping in front of the retry executor.

Three policies are supported, selected per call from the effective config:

- throttle: executions sharing a call key are spaced at least `throttle_s`
  apart. A caller arriving while an execution for the same key is in flight
  receives that execution's outcome instead of starting a new one. Callers
  that arrive inside the window with nothing in flight each wait out the
  remaining time on their own and are not merged with one another.
- debounce: each call replaces the pending timer for its key. Only the last
  caller in a quiet period triggers an execution. Earlier callers are never
  resolved or rejected.
- immediate: straight through to the executor.

All bookkeeping happens synchronously between suspension points, so no
locks are required on a single event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from ..types import FetchOutcome, RequestOptions
from .contracts import FetchConfig
from .keys import call_key
from .retry import RetryExecutor, SleepFn

logger = logging.getLogger("resilient_http.scheduler")


class RequestScheduler:
    """Decides when a logical request may reach the retry executor."""

    def __init__(
        self,
        executor: RetryExecutor,
        *,
        clock: Callable[[], float] | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._executor = executor
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_execution: dict[str, float] = {}
        self._in_flight: dict[str, asyncio.Task[FetchOutcome]] = {}
        self._debounce_timers: dict[str, asyncio.TimerHandle] = {}
        self._debounce_waiters: dict[str, asyncio.Future[FetchOutcome]] = {}
        self._background: set[asyncio.Task[FetchOutcome]] = set()

    async def schedule(
        self,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> FetchOutcome:
        policy = config.policy
        if policy == "throttle":
            return await self._throttled(address, options, config)
        if policy == "debounce":
            return await self._debounced(address, options, config)
        return await self._executor.execute(address, options, config)

    def last_execution(self, key: str) -> float | None:
        return self._last_execution.get(key)

    def in_flight_keys(self) -> list[str]:
        return sorted(self._in_flight)

    def pending_debounce_keys(self) -> list[str]:
        return sorted(self._debounce_timers)

    async def _throttled(
        self,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> FetchOutcome:
        key = call_key(address, options)
        last = self._last_execution.get(key)
        elapsed = None if last is None else self._clock() - last

        if elapsed is not None and elapsed < config.throttle_s:
            existing = self._in_flight.get(key)
            if existing is not None:
                logger.debug("Coalescing throttled call onto in-flight request %s", key[:12])
                return await asyncio.shield(existing)

            remaining_s = config.throttle_s - elapsed
            logger.debug("Request throttled; next execution in %.3fs", remaining_s)
            await self._sleep(remaining_s)

            existing = self._in_flight.get(key)
            if existing is not None:
                return await asyncio.shield(existing)

        task = self._start_throttled(key, address, options, config)
        return await asyncio.shield(task)

    def _start_throttled(
        self,
        key: str,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> asyncio.Task[FetchOutcome]:
        self._last_execution[key] = self._clock()
        task: asyncio.Task[FetchOutcome] = asyncio.create_task(
            self._executor.execute(address, options, config)
        )
        self._in_flight[key] = task

        def _settled(done: asyncio.Task[FetchOutcome]) -> None:
            if self._in_flight.get(key) is done:
                del self._in_flight[key]
            if not done.cancelled():
                done.exception()  # marks the error retrieved if every waiter left

        task.add_done_callback(_settled)
        return task

    async def _debounced(
        self,
        address: str,
        options: RequestOptions,
        config: FetchConfig,
    ) -> FetchOutcome:
        key = call_key(address, options)
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[FetchOutcome] = loop.create_future()

        pending = self._debounce_timers.pop(key, None)
        if pending is not None:
            pending.cancel()
            logger.debug("Superseded pending debounced request %s", key[:12])

        def _fire() -> None:
            if self._debounce_timers.get(key) is handle:
                del self._debounce_timers[key]
            if self._debounce_waiters.get(key) is waiter:
                del self._debounce_waiters[key]
            if waiter.done():
                return
            self._last_execution[key] = self._clock()
            task = asyncio.create_task(self._executor.execute(address, options, config))
            self._background.add(task)
            task.add_done_callback(_transfer)

        def _transfer(task: asyncio.Task[FetchOutcome]) -> None:
            self._background.discard(task)
            if waiter.done():
                if not task.cancelled():
                    task.exception()
                return
            if task.cancelled():
                waiter.cancel()
            elif task.exception() is not None:
                waiter.set_exception(task.exception())
            else:
                waiter.set_result(task.result())

        logger.debug("Request debounced; execution scheduled in %.3fs", config.debounce_s)
        handle = loop.call_later(config.debounce_s, _fire)
        self._debounce_timers[key] = handle
        self._debounce_waiters[key] = waiter
        return await waiter

    async def aclose(self) -> None:
        """Cancel pending debounce timers and wait for background executions."""
        for handle in self._debounce_timers.values():
            handle.cancel()
        self._debounce_timers.clear()
        for waiter in self._debounce_waiters.values():
            waiter.cancel()
        self._debounce_waiters.clear()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
