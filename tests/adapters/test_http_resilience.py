from __future__ import annotations

import asyncio

import httpx
import pytest

from claimsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from claimsync.config.http_resilience import RateLimit
from claimsync.domain.errors import TransientFetchError
from tests.helpers.claims import JSON_HEADERS, UNDECODABLE_JSON, fast_retry


def _client(handler: httpx.MockTransport, **overrides: object) -> ResilientClient:
    config = ResilienceConfig(
        name="test",
        base_url="https://api.test",
        retry=fast_retry(),
        **overrides,  # type: ignore[arg-type]
    )
    return ResilientClient(config, transport=handler)


def test_get_json_retries_server_errors_then_raises() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(500, json={"message": "boom"})

    async def run() -> None:
        async with _client(httpx.MockTransport(handler)) as client:
            await client.get_json("/claims")

    with pytest.raises(TransientFetchError) as excinfo:
        asyncio.run(run())

    assert len(calls) == 3
    assert excinfo.value.status_code == 500
    assert "after retries" in str(excinfo.value)


def test_get_json_recovers_after_transient_failure() -> None:
    responses = iter(
        [
            httpx.Response(429, json={"message": "slow down"}),
            httpx.Response(503, json={"message": "unavailable"}),
            httpx.Response(200, json={"ok": True}),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return next(responses)

    async def run() -> object:
        async with _client(httpx.MockTransport(handler)) as client:
            return await client.get_json("/claims")

    assert asyncio.run(run()) == {"ok": True}


def test_get_json_returns_none_on_not_found_without_retrying() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(404, json={"message": "not_found"})

    async def run() -> object:
        async with _client(httpx.MockTransport(handler)) as client:
            return await client.get_json("/orders/1")

    assert asyncio.run(run()) is None
    assert calls == ["/orders/1"]


def test_get_json_does_not_retry_client_errors() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(403, json={"message": "forbidden"})

    async def run() -> None:
        async with _client(httpx.MockTransport(handler)) as client:
            await client.get_json("/orders/1")

    with pytest.raises(TransientFetchError) as excinfo:
        asyncio.run(run())

    assert calls == ["/orders/1"]
    assert excinfo.value.status_code == 403


def test_get_json_soft_degrades_transport_errors_to_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run() -> object:
        async with _client(httpx.MockTransport(handler)) as client:
            return await client.get_json_soft("/items/MLB1")

    assert asyncio.run(run()) is None


def test_get_json_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, text="<html>maintenance</html>")

    async def run() -> None:
        async with _client(httpx.MockTransport(handler)) as client:
            await client.get_json("/claims")

    with pytest.raises(TransientFetchError, match="non-JSON"):
        asyncio.run(run())


def test_rate_limited_client_still_completes_requests() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"path": request.url.path})

    async def run() -> list[object]:
        async with _client(
            httpx.MockTransport(handler), ratelimit=RateLimit(max_calls=50, per_seconds=1.0)
        ) as client:
            return list(
                await asyncio.gather(*(client.get_json(f"/items/{index}") for index in range(5)))
            )

    results = asyncio.run(run())

    assert results == [{"path": f"/items/{index}"} for index in range(5)]


def test_undecodable_json_body_is_a_transient_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, content=UNDECODABLE_JSON, headers=JSON_HEADERS)

    async def run() -> tuple[object, BaseException | None]:
        async with _client(httpx.MockTransport(handler)) as client:
            soft = await client.get_json_soft("/claims/1/returns")
            try:
                await client.get_json("/claims/1/returns")
            except TransientFetchError as exc:
                return soft, exc
            return soft, None

    soft, error = asyncio.run(run())

    assert soft is None
    assert isinstance(error, TransientFetchError)
    assert "non-JSON" in str(error)
