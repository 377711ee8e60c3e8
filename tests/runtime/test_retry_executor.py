from __future__ import annotations

import asyncio

import pytest

from resilient_http import (
    CallableHooks,
    FetchConfig,
    HttpResponse,
    MaxRetriesExceeded,
    RequestOptions,
    ResponseFormatError,
    RetryableStatusFailure,
    RetryExecutor,
    RetryOverride,
    TransportFailure,
)


def run_async(coro):
    return asyncio.run(coro)


def _json(status: int, body: str) -> HttpResponse:
    return HttpResponse(status=status, headers={"Content-Type": "application/json"}, body=body.encode())


class _ScriptedTransport:
    """Replays a script of responses/exceptions, repeating the last step."""

    def __init__(self, *steps) -> None:
        self._steps = list(steps)
        self.calls: list[tuple[str, RequestOptions]] = []

    async def send(self, address: str, options: RequestOptions) -> HttpResponse:
        self.calls.append((address, options))
        step = self._steps[min(len(self.calls), len(self._steps)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay_s: float) -> None:
        self.delays.append(delay_s)


def test_always_failing_transport_makes_max_retries_attempts_with_backoff():
    async def scenario() -> None:
        transport = _ScriptedTransport(ConnectionError("reset by peer"))
        sleep = _RecordingSleep()
        executor = RetryExecutor(transport, sleep=sleep)
        config = FetchConfig(
            max_retries=3,
            initial_backoff_s=0.1,
            backoff_factor=2,
            max_backoff_s=1.0,
        )

        with pytest.raises(MaxRetriesExceeded) as info:
            await executor.execute("https://api/items", RequestOptions(), config)

        assert len(transport.calls) == 3
        assert sleep.delays == pytest.approx([0.1, 0.2])
        assert info.value.attempts == 3
        assert isinstance(info.value.last_error, TransportFailure)
        assert isinstance(info.value.__cause__, TransportFailure)

    run_async(scenario())


def test_backoff_is_capped_at_max_backoff():
    async def scenario() -> None:
        transport = _ScriptedTransport(_json(500, "{}"))
        sleep = _RecordingSleep()
        executor = RetryExecutor(transport, sleep=sleep)
        config = FetchConfig(
            max_retries=5,
            initial_backoff_s=0.5,
            backoff_factor=3,
            max_backoff_s=2.0,
        )

        with pytest.raises(MaxRetriesExceeded) as info:
            await executor.execute("https://api/items", RequestOptions(), config)

        assert sleep.delays == pytest.approx([0.5, 1.5, 2.0, 2.0])
        assert isinstance(info.value.last_error, RetryableStatusFailure)
        assert info.value.last_error.status == 500

    run_async(scenario())


def test_non_retryable_error_status_passes_through_as_success():
    async def scenario() -> None:
        transport = _ScriptedTransport(_json(404, '{"detail": "missing"}'))
        executor = RetryExecutor(transport, sleep=_RecordingSleep())
        config = FetchConfig(retry_on_errors={500})

        outcome = await executor.execute("https://api/items/9", RequestOptions(), config)

        assert outcome.value == {"detail": "missing"}
        assert outcome.response.status == 404
        assert outcome.response.ok is False
        assert len(transport.calls) == 1

    run_async(scenario())


def test_retryable_status_recovers_on_later_attempt():
    async def scenario() -> None:
        transport = _ScriptedTransport(
            _json(500, "{}"),
            TimeoutError("slow"),
            _json(200, '{"ok": true}'),
        )
        sleep = _RecordingSleep()
        executor = RetryExecutor(transport, sleep=sleep)

        outcome = await executor.execute(
            "https://api/items",
            RequestOptions(),
            FetchConfig(initial_backoff_s=0.01),
        )

        assert outcome.value == {"ok": True}
        assert outcome.attempts == 3
        assert sleep.delays == pytest.approx([0.01, 0.02])

    run_async(scenario())


def test_on_retry_override_applies_to_that_attempt_only():
    async def scenario() -> None:
        transport = _ScriptedTransport(
            ConnectionError("down"),
            ConnectionError("down"),
            _json(200, '"done"'),
        )
        seen: list[tuple[int, str]] = []

        def on_retry(attempt, address, options):
            seen.append((attempt, address))
            if attempt == 1:
                return RetryOverride(
                    address="https://mirror/items",
                    options=options.with_changes(headers={"X-Attempt": "1"}),
                )
            return None

        executor = RetryExecutor(transport, sleep=_RecordingSleep())
        config = FetchConfig(initial_backoff_s=0, hooks=CallableHooks(on_retry=on_retry))

        outcome = await executor.execute("https://api/items", RequestOptions(), config)

        assert outcome.value == "done"
        assert seen == [(1, "https://api/items"), (2, "https://api/items")]
        assert [address for address, _ in transport.calls] == [
            "https://api/items",
            "https://mirror/items",
            "https://api/items",
        ]
        assert transport.calls[1][1].headers == {"X-Attempt": "1"}
        assert transport.calls[2][1].headers == {}

    run_async(scenario())


def test_on_error_replacement_short_circuits_remaining_attempts():
    async def scenario() -> None:
        class QuotaExceeded(Exception):
            pass

        transport = _ScriptedTransport(_json(500, "{}"))
        attempts_seen: list[int] = []

        def on_error(error, attempt):
            attempts_seen.append(attempt)
            return QuotaExceeded(f"stop after {attempt}")

        sleep = _RecordingSleep()
        executor = RetryExecutor(transport, sleep=sleep)
        config = FetchConfig(max_retries=5, hooks=CallableHooks(on_error=on_error))

        with pytest.raises(QuotaExceeded) as info:
            await executor.execute("https://api/items", RequestOptions(), config)

        assert len(transport.calls) == 1
        assert attempts_seen == [1]
        assert sleep.delays == []
        assert isinstance(info.value.__cause__, RetryableStatusFailure)

    run_async(scenario())


def test_on_error_returning_none_only_observes():
    async def scenario() -> None:
        transport = _ScriptedTransport(ConnectionError("x"))
        observed: list[tuple[str, int]] = []

        async def on_error(error, attempt):
            observed.append((type(error).__name__, attempt))
            return None

        executor = RetryExecutor(transport, sleep=_RecordingSleep())
        config = FetchConfig(max_retries=2, hooks=CallableHooks(on_error=on_error))

        with pytest.raises(MaxRetriesExceeded):
            await executor.execute("https://api/items", RequestOptions(), config)

        assert observed == [("TransportFailure", 1), ("TransportFailure", 2)]

    run_async(scenario())


def test_on_http_response_sees_every_raw_response():
    async def scenario() -> None:
        transport = _ScriptedTransport(_json(500, "{}"), _json(200, "[1]"))
        statuses: list[int] = []
        executor = RetryExecutor(transport, sleep=_RecordingSleep())
        config = FetchConfig(
            hooks=CallableHooks(on_http_response=lambda response: statuses.append(response.status)),
        )

        outcome = await executor.execute("https://api/items", RequestOptions(), config)

        assert outcome.value == [1]
        assert statuses == [500, 200]

    run_async(scenario())


def test_decode_failure_is_not_retried():
    async def scenario() -> None:
        transport = _ScriptedTransport(_json(200, "{not json"))
        errors: list[Exception] = []
        executor = RetryExecutor(transport, sleep=_RecordingSleep())
        config = FetchConfig(hooks=CallableHooks(on_error=lambda e, a: errors.append(e)))

        with pytest.raises(ResponseFormatError):
            await executor.execute("https://api/items", RequestOptions(), config)

        assert len(transport.calls) == 1
        assert errors == []

    run_async(scenario())
