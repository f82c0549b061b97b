from __future__ import annotations

import asyncio

import httpx
import pytest

from apiload.config import RunConfig
from apiload.loadgen.client import HttpRequester
from apiload.loadgen.requester import requester_for
from apiload.metrics import ErrorType, Outcome


def _attempt(handler, url: str = "https://api.test/items") -> Outcome:
    async def run() -> Outcome:
        requester = HttpRequester(
            timeout_sec=1.0,
            headers={"User-Agent": "API-Testing-Tool/1.0"},
            transport=httpx.MockTransport(handler),
        )
        await requester.open()
        try:
            return await requester.attempt(url)
        finally:
            await requester.close()

    return asyncio.run(run())


def test_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    outcome = _attempt(handler)
    assert outcome.success
    assert outcome.status_code == 200
    assert not outcome.rate_limited
    assert outcome.error is None
    assert outcome.response_time_ms >= 0
    assert seen[0].method == "GET"
    assert seen[0].headers["User-Agent"] == "API-Testing-Tool/1.0"


def test_rate_limited_response() -> None:
    outcome = _attempt(lambda request: httpx.Response(429))
    assert not outcome.success
    assert outcome.rate_limited
    assert outcome.status_code == 429
    assert outcome.error is not None
    assert outcome.error.code == ErrorType.HTTP_STATUS.value


def test_server_error() -> None:
    outcome = _attempt(lambda request: httpx.Response(503))
    assert not outcome.success
    assert not outcome.rate_limited
    assert outcome.error is not None
    assert "503" in outcome.error.message


@pytest.mark.parametrize(
    ("exc_type", "expected"),
    [
        (httpx.ConnectError, ErrorType.CONNECT),
        (httpx.ReadTimeout, ErrorType.TIMEOUT),
        (httpx.ReadError, ErrorType.READ),
        (httpx.RemoteProtocolError, ErrorType.OTHER),
    ],
)
def test_transport_errors_become_outcomes(exc_type: type[httpx.HTTPError], expected: ErrorType) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)

    outcome = _attempt(handler)
    assert not outcome.success
    assert outcome.status_code == 0
    assert not outcome.rate_limited
    assert outcome.error is not None
    assert outcome.error.code == expected.value


def test_attempt_requires_open() -> None:
    requester = HttpRequester()
    with pytest.raises(RuntimeError):
        asyncio.run(requester.attempt("https://api.test/"))


def test_redirect_is_followed_to_final_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/feed/home/":
            return httpx.Response(308, headers={"Location": "https://api.test/api/feed/home"})
        return httpx.Response(200, json={"items": []})

    outcome = _attempt(handler, "https://api.test/api/feed/home/")
    assert outcome.success
    assert outcome.status_code == 200
    assert outcome.error is None


def test_connection_pool_follows_concurrency() -> None:
    requester = requester_for(RunConfig(concurrent_requests=500))
    assert isinstance(requester, HttpRequester)
    assert requester.limits.max_connections == 500
    assert requester.limits.max_keepalive_connections == 500

    async def pool_size() -> int:
        await requester.open()
        try:
            return requester._client._transport._pool._max_connections  # type: ignore[union-attr]
        finally:
            await requester.close()

    assert asyncio.run(pool_size()) == 500
