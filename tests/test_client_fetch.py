from __future__ import annotations

import asyncio
import sqlite3

import pytest
from pydantic import BaseModel

from resilient_http import (
    CacheStore,
    CallableHooks,
    ConfigurationError,
    FetchSettings,
    HttpResponse,
    InMemoryKeyValueBackend,
    MaxRetriesExceeded,
    RequestOptions,
    ResilientHttpClient,
    ResponseFormatError,
    SQLiteKeyValueBackend,
)


def run_async(coro):
    return asyncio.run(coro)


class _CountingTransport:
    def __init__(self, *, status: int = 200, content_type: str = "application/json", body: bytes | None = None) -> None:
        self.status = status
        self.content_type = content_type
        self.body = body
        self.calls: list[tuple[str, RequestOptions]] = []

    async def send(self, address: str, options: RequestOptions) -> HttpResponse:
        self.calls.append((address, options))
        body = self.body if self.body is not None else (
            f'{{"address": "{address}", "n": {len(self.calls)}}}'.encode()
        )
        return HttpResponse(
            status=self.status,
            headers={"Content-Type": self.content_type},
            body=body,
            url=address,
        )


class _User(BaseModel):
    id: int
    name: str


async def _no_sleep(delay_s: float) -> None:
    _ = delay_s


def test_cached_value_is_returned_without_touching_transport():
    async def scenario() -> None:
        transport = _CountingTransport()
        client = ResilientHttpClient(transport, cache_backend=InMemoryKeyValueBackend())

        first = await client.fetch("https://api/items", with_cache=True, cache_ttl_s=60)
        second = await client.fetch("https://api/items", with_cache=True, cache_ttl_s=60)

        assert first == {"address": "https://api/items", "n": 1}
        assert second == first
        assert len(transport.calls) == 1

    run_async(scenario())


def test_cache_hit_skips_every_hook():
    async def scenario() -> None:
        transport = _CountingTransport()
        events: list[str] = []
        hooks = CallableHooks(
            on_http_response=lambda response: events.append("response"),
            on_success=lambda value, response: events.append("success"),
        )
        client = ResilientHttpClient(transport, defaults={"with_cache": True, "hooks": hooks})

        await client.fetch("https://api/items")
        await client.fetch("https://api/items")

        assert events == ["response", "success"]

    run_async(scenario())


def test_cache_key_defaults_to_address_and_ignores_body():
    async def scenario() -> None:
        transport = _CountingTransport()
        client = ResilientHttpClient(transport)

        a = await client.fetch("https://api/q", {"method": "POST", "body": "a"}, with_cache=True)
        b = await client.fetch("https://api/q", {"method": "POST", "body": "b"}, with_cache=True)
        c = await client.fetch(
            "https://api/q",
            {"method": "POST", "body": "b"},
            with_cache=True,
            cache_key="https://api/q#b",
        )

        assert a == b
        assert c["n"] == 2
        assert len(transport.calls) == 2
        assert await client.cache.get("https://api/q#b") == c

    run_async(scenario())


def test_expired_cache_entry_refetches():
    async def scenario() -> None:
        clock_now = [1_000.0]
        transport = _CountingTransport()
        store = CacheStore(InMemoryKeyValueBackend(), clock=lambda: clock_now[0])
        client = ResilientHttpClient(transport, cache=store)

        await client.fetch("https://api/items", with_cache=True, cache_ttl_s=60)
        clock_now[0] += 61
        refreshed = await client.fetch("https://api/items", with_cache=True, cache_ttl_s=60)

        assert refreshed["n"] == 2
        assert len(transport.calls) == 2

    run_async(scenario())


def test_on_success_replacement_is_returned_and_cached():
    async def scenario() -> None:
        transport = _CountingTransport()

        async def on_success(value, response):
            await asyncio.sleep(0)
            return {"wrapped": value["n"], "status": response.status}

        client = ResilientHttpClient(transport, defaults={"hooks": CallableHooks(on_success=on_success)})

        value = await client.fetch("https://api/items", with_cache=True)

        assert value == {"wrapped": 1, "status": 200}
        assert await client.cache.get("https://api/items") == value

    run_async(scenario())


def test_non_retryable_status_body_passes_through_client():
    async def scenario() -> None:
        transport = _CountingTransport(status=404, body=b'{"detail": "nope"}')
        client = ResilientHttpClient(transport, sleep=_no_sleep)

        value = await client.fetch("https://api/missing", retry_on_errors=[500])

        assert value == {"detail": "nope"}
        assert len(transport.calls) == 1

    run_async(scenario())


def test_retry_exhaustion_surfaces_max_retries_exceeded():
    async def scenario() -> None:
        transport = _CountingTransport(status=500)
        client = ResilientHttpClient(transport, sleep=_no_sleep)

        with pytest.raises(MaxRetriesExceeded):
            await client.fetch("https://api/down", with_cache=True)

        assert len(transport.calls) == 3
        assert await client.cache.get("https://api/down") is None

    run_async(scenario())


def test_response_model_validates_and_caches_plain_json(tmp_path):
    async def scenario() -> None:
        transport = _CountingTransport(body=b'{"id": 7, "name": "ada"}')
        client = ResilientHttpClient(
            transport,
            cache_backend=SQLiteKeyValueBackend(tmp_path / "cache.sqlite3"),
        )

        user = await client.fetch("https://api/user/7", response_model=_User, with_cache=True)
        again = await client.fetch("https://api/user/7", response_model=_User, with_cache=True)

        assert user == _User(id=7, name="ada")
        assert isinstance(again, _User) and again == user
        assert await client.cache.get("https://api/user/7") == {"id": 7, "name": "ada"}
        assert len(transport.calls) == 1
        await client.aclose()

    run_async(scenario())


def test_corrupt_sqlite_row_falls_through_to_transport(tmp_path):
    path = tmp_path / "cache.sqlite3"
    with sqlite3.connect(path) as conn:
        conn.execute(
            "CREATE TABLE cache (key TEXT PRIMARY KEY, value TEXT NOT NULL, expires_at REAL NOT NULL)"
        )
        conn.execute("INSERT INTO cache VALUES (?, ?, ?)", ("https://api/x", "{broken", 9e12))
    conn.close()

    async def scenario() -> None:
        transport = _CountingTransport()
        client = ResilientHttpClient(transport, cache_backend=SQLiteKeyValueBackend(path))

        value = await client.fetch("https://api/x", with_cache=True)

        assert value == {"address": "https://api/x", "n": 1}
        assert len(transport.calls) == 1
        assert await client.cache.get("https://api/x") == value
        await client.aclose()

    run_async(scenario())


def test_response_model_mismatch_raises_format_error():
    async def scenario() -> None:
        transport = _CountingTransport(body=b'{"id": "x"}')
        client = ResilientHttpClient(transport)

        with pytest.raises(ResponseFormatError):
            await client.fetch("https://api/user/x", response_model=_User)

    run_async(scenario())


def test_text_response_type_and_auto_detection():
    async def scenario() -> None:
        html = _CountingTransport(content_type="text/html", body=b"<h1>ok</h1>")
        client = ResilientHttpClient(html)
        assert await client.fetch("https://site/") == "<h1>ok</h1>"

        forced = _CountingTransport(body=b'{"a": 1}')
        client = ResilientHttpClient(forced)
        assert await client.fetch("https://api/raw", response_type="text") == '{"a": 1}'

    run_async(scenario())


def test_invalidate_and_clear_cache_through_client():
    async def scenario() -> None:
        transport = _CountingTransport()
        client = ResilientHttpClient(transport, defaults={"with_cache": True})
        for address in ("https://api/user/1", "https://api/user/2", "https://api/orders"):
            await client.fetch(address)

        assert await client.invalidate_cache("/user/") == 2
        await client.fetch("https://api/user/1")
        await client.fetch("https://api/orders")
        assert len(transport.calls) == 4

        await client.clear_cache()
        await client.fetch("https://api/orders")
        assert len(transport.calls) == 5

    run_async(scenario())


def test_disabled_cache_backend_still_fetches():
    async def scenario() -> None:
        transport = _CountingTransport()
        client = ResilientHttpClient(transport, cache_backend="none")

        await client.fetch("https://api/items", with_cache=True)
        await client.fetch("https://api/items", with_cache=True)

        assert client.cache.available is False
        assert len(transport.calls) == 2

    run_async(scenario())


def test_settings_feed_process_default_layer():
    async def scenario() -> None:
        transport = _CountingTransport(status=503)
        settings = FetchSettings(max_retries=2, retry_on_errors=frozenset({503}), timeout_s=4.0)
        client = ResilientHttpClient(transport, settings=settings, sleep=_no_sleep)

        with pytest.raises(MaxRetriesExceeded) as info:
            await client.fetch("https://api/busy")

        assert info.value.attempts == 2
        assert transport.calls[0][1].timeout_s == 4.0
        assert client.effective_config(max_retries=9).max_retries == 9

    run_async(scenario())


def test_throttled_fetches_share_one_transport_call():
    async def scenario() -> None:
        class _Slow(_CountingTransport):
            async def send(self, address, options):
                await asyncio.sleep(0.2)
                return await super().send(address, options)

        transport = _Slow()
        client = ResilientHttpClient(transport, defaults={"throttle_s": 1.0})

        first = asyncio.create_task(client.fetch("https://api/feed"))
        await asyncio.sleep(0.05)
        second = asyncio.create_task(client.fetch("https://api/feed"))

        assert await first == await second
        assert len(transport.calls) == 1

    run_async(scenario())


def test_fetch_sync_runs_outside_event_loop():
    transport = _CountingTransport(content_type="text/plain", body=b"pong")
    client = ResilientHttpClient(transport)

    assert client.fetch_sync("https://api/ping") == "pong"

    async def inside_loop() -> None:
        with pytest.raises(RuntimeError):
            client.fetch_sync("https://api/ping")

    run_async(inside_loop())


def test_instance_defaults_are_validated_once_at_construction():
    with pytest.raises(ConfigurationError):
        ResilientHttpClient(_CountingTransport(), defaults={"max_retries": 0})

    client = ResilientHttpClient(
        _CountingTransport(),
        settings=FetchSettings(max_retries=5),
        defaults={"with_cache": True, "throttle_s": 0.5},
    )
    config = client.effective_config()
    assert config.max_retries == 5
    assert config.with_cache is True
    assert config.policy == "throttle"
    assert client.effective_config(throttle_s=0.0).policy == "immediate"
