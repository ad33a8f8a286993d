"""Tests for Dispatcher."""

from __future__ import annotations

from typing import Any

import pytest

from core.trans.dispatcher import Dispatcher
from core.trans.errors import CookieRefreshError, HTTPStatusError, HTTPTooManyRequests
from handlers.async_comm import AsyncCommError, HttpResponse
from models.cache_models import CookieEntry
from models.translation_models import PreparedRequest

SERVICE_URL = "https://translate.google.com"


class FakeCookieCache:
    def __init__(self) -> None:
        self.generation: int = 0
        self.refreshes: list[tuple[str, float]] = []

    async def get(self, service_url: str) -> CookieEntry:
        _ = service_url
        return CookieEntry(name="NID", value=f"v{self.generation}")

    async def force_refresh(self, service_url: str, delay: float) -> CookieEntry:
        self.refreshes.append((service_url, delay))
        self.generation += 1
        return await self.get(service_url)


class FakeHttp:
    def __init__(self, *responses: HttpResponse | Exception) -> None:
        self.responses: list[HttpResponse | Exception] = list(responses)
        self.requests: list[dict[str, Any]] = []

    async def request(self, method: str, url: str, *, headers: dict[str, str] | None = None, data=None) -> HttpResponse:
        self.requests.append({"method": method, "url": url, "headers": headers, "data": data})
        item: HttpResponse | Exception = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _request(method: str = "GET") -> PreparedRequest:
    if method == "GET":
        return PreparedRequest(method="GET", url=f"{SERVICE_URL}/translate_a/single?q=hi", service_url=SERVICE_URL)
    return PreparedRequest(
        method="POST",
        url=f"{SERVICE_URL}/translate_a/single?tk=1.2",
        service_url=SERVICE_URL,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body="q=hi",
    )


OK = HttpResponse(status=200, reason="OK", body=b'[[["hola","hi"]]]')
RATE_LIMITED = HttpResponse(status=429, reason="Too Many Requests")


@pytest.mark.asyncio
async def test_send_returns_body_and_attaches_cookie() -> None:
    http = FakeHttp(OK)
    cookies = FakeCookieCache()
    dispatcher = Dispatcher(http, cookies)  # type: ignore[arg-type]

    body: bytes = await dispatcher.send(_request())

    assert body == b'[[["hola","hi"]]]'
    assert http.requests[0]["method"] == "GET"
    assert http.requests[0]["headers"] == {"Cookie": "NID=v0"}
    assert http.requests[0]["data"] is None
    assert cookies.refreshes == []


@pytest.mark.asyncio
async def test_post_keeps_form_headers_and_body() -> None:
    http = FakeHttp(OK)
    dispatcher = Dispatcher(http, FakeCookieCache())  # type: ignore[arg-type]

    await dispatcher.send(_request("POST"))

    sent: dict[str, Any] = http.requests[0]
    assert sent["method"] == "POST"
    assert sent["headers"] == {"Content-Type": "application/x-www-form-urlencoded", "Cookie": "NID=v0"}
    assert sent["data"] == "q=hi"


@pytest.mark.asyncio
async def test_rate_limit_refreshes_cookie_and_retries() -> None:
    http = FakeHttp(RATE_LIMITED, OK)
    cookies = FakeCookieCache()
    dispatcher = Dispatcher(http, cookies)  # type: ignore[arg-type]

    body: bytes = await dispatcher.send(_request())

    assert body == OK.body
    assert cookies.refreshes == [(SERVICE_URL, 3.0)]
    assert [sent["headers"]["Cookie"] for sent in http.requests] == ["NID=v0", "NID=v1"]


@pytest.mark.asyncio
async def test_rate_limit_gives_up_after_max_attempts() -> None:
    http = FakeHttp(RATE_LIMITED, RATE_LIMITED, RATE_LIMITED)
    cookies = FakeCookieCache()
    dispatcher = Dispatcher(http, cookies)  # type: ignore[arg-type]

    with pytest.raises(HTTPTooManyRequests) as exc_info:
        await dispatcher.send(_request())

    assert exc_info.value.status == 429
    assert len(http.requests) == 3
    assert len(cookies.refreshes) == 2


@pytest.mark.asyncio
async def test_rate_limit_settings_are_configurable() -> None:
    http = FakeHttp(RATE_LIMITED, RATE_LIMITED, OK)
    cookies = FakeCookieCache()
    dispatcher = Dispatcher(http, cookies, max_attempts=2, rate_limit_backoff=0.5)  # type: ignore[arg-type]

    with pytest.raises(HTTPTooManyRequests):
        await dispatcher.send(_request())

    assert len(http.requests) == 2
    assert cookies.refreshes == [(SERVICE_URL, 0.5)]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 403, 500, 503])
async def test_other_status_fails_without_retry(status: int) -> None:
    http = FakeHttp(HttpResponse(status=status, reason="nope"), OK)
    cookies = FakeCookieCache()
    dispatcher = Dispatcher(http, cookies)  # type: ignore[arg-type]

    with pytest.raises(HTTPStatusError) as exc_info:
        await dispatcher.send(_request())

    assert not isinstance(exc_info.value, HTTPTooManyRequests)
    assert exc_info.value.status == status
    assert len(http.requests) == 1
    assert cookies.refreshes == []


@pytest.mark.asyncio
async def test_transport_error_propagates() -> None:
    http = FakeHttp(AsyncCommError("connection reset"))
    dispatcher = Dispatcher(http, FakeCookieCache())  # type: ignore[arg-type]

    with pytest.raises(AsyncCommError):
        await dispatcher.send(_request())


@pytest.mark.asyncio
async def test_cookie_failure_propagates_before_request() -> None:
    class BrokenCookieCache(FakeCookieCache):
        async def get(self, service_url: str) -> CookieEntry:
            msg = f"no cookie for {service_url}"
            raise CookieRefreshError(msg)

    http = FakeHttp(OK)
    dispatcher = Dispatcher(http, BrokenCookieCache())  # type: ignore[arg-type]

    with pytest.raises(CookieRefreshError):
        await dispatcher.send(_request())

    assert http.requests == []
