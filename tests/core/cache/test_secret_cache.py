"""Tests for SecretCache."""

from __future__ import annotations

import asyncio

import pytest

from core.cache.secret_cache import SecretCache
from core.trans.errors import SecretFetchError, SecretNotFoundError, SecretRefreshTimeoutError
from handlers.async_comm import AsyncCommError, HttpResponse

HOUR_BUCKET = 500000
NOW: float = HOUR_BUCKET * 3600 + 42.0
SECRET = f"{HOUR_BUCKET}.1234567"


def _page(secret: str = SECRET) -> HttpResponse:
    return HttpResponse(status=200, body=f"<script>window.x={{tkk:'{secret}',v:1}}</script>".encode())


class FakeHttp:
    """Returns queued responses in order, repeating the last one; tracks concurrency."""

    def __init__(self, *responses: HttpResponse | Exception, delay: float = 0.01) -> None:
        self.responses: list[HttpResponse | Exception] = list(responses)
        self.delay: float = delay
        self.calls: list[str] = []
        self.in_flight: int = 0
        self.max_in_flight: int = 0

    async def get(self, url: str, *, headers: dict[str, str] | None = None) -> HttpResponse:
        _ = headers
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        item: HttpResponse | Exception = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _cache(http: FakeHttp, *, now: float = NOW, refresh_timeout: float = 0.0) -> SecretCache:
    return SecretCache(
        http,  # type: ignore[arg-type]
        "https://translate.google.com",
        retry_delay=0.01,
        refresh_timeout=refresh_timeout,
        clock=lambda: now,
    )


def test_initial_entry_is_sentinel() -> None:
    cache: SecretCache = _cache(FakeHttp(_page()))

    assert cache.current.value == "0"
    assert cache.current.is_valid(NOW) is False


@pytest.mark.asyncio
async def test_get_refreshes_once_within_hour_bucket() -> None:
    http = FakeHttp(_page())
    cache: SecretCache = _cache(http)

    first: str = await cache.get()
    second: str = await cache.get()

    assert first == SECRET
    assert second == SECRET
    assert len(http.calls) == 1


@pytest.mark.asyncio
async def test_get_refreshes_when_hour_changes() -> None:
    now: list[float] = [NOW]
    http = FakeHttp(_page(), _page(f"{HOUR_BUCKET + 1}.42"))
    cache = SecretCache(
        http,  # type: ignore[arg-type]
        retry_delay=0.01,
        refresh_timeout=0.0,
        clock=lambda: now[0],
    )

    assert await cache.get() == SECRET
    now[0] = NOW + 3600

    assert await cache.get() == f"{HOUR_BUCKET + 1}.42"
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_concurrent_callers_share_a_single_refresh() -> None:
    http = FakeHttp(_page(), delay=0.05)
    cache: SecretCache = _cache(http)

    results: list[str] = await asyncio.gather(*(cache.get() for _ in range(10)))

    assert results == [SECRET] * 10
    assert len(http.calls) == 1
    assert http.max_in_flight == 1


@pytest.mark.asyncio
async def test_concurrent_callers_all_fail_without_overlapping_refreshes() -> None:
    http = FakeHttp(HttpResponse(status=200, body=b"<html>no secret here</html>"))
    cache: SecretCache = _cache(http)

    results: list[str | BaseException] = await asyncio.gather(
        *(cache.get() for _ in range(5)), return_exceptions=True
    )

    assert all(isinstance(result, SecretRefreshTimeoutError) for result in results)
    assert http.max_in_flight == 1


@pytest.mark.asyncio
async def test_failed_refresh_hands_over_to_one_waiter() -> None:
    http = FakeHttp(HttpResponse(status=200, body=b"nothing"), _page())
    cache: SecretCache = _cache(http)

    first, second = await asyncio.gather(cache.get(), cache.get(), return_exceptions=True)

    assert isinstance(first, SecretRefreshTimeoutError)
    assert isinstance(first.__cause__, SecretNotFoundError)
    assert second == SECRET
    assert len(http.calls) == 2


@pytest.mark.asyncio
async def test_refresh_retries_until_success() -> None:
    http = FakeHttp(AsyncCommError("connection refused"), HttpResponse(status=200, body=b"?"), _page())
    cache: SecretCache = _cache(http, refresh_timeout=5.0)

    secret: str = await cache.get()

    assert secret == SECRET
    assert len(http.calls) == 3


@pytest.mark.asyncio
async def test_http_error_status_is_reported_as_cause() -> None:
    http = FakeHttp(HttpResponse(status=503, reason="Service Unavailable"))
    cache: SecretCache = _cache(http)

    with pytest.raises(SecretRefreshTimeoutError) as exc_info:
        await cache.get()

    cause = exc_info.value.__cause__
    assert isinstance(cause, SecretFetchError)
    assert cause.status == 503


@pytest.mark.asyncio
async def test_refresh_gives_up_after_timeout() -> None:
    http = FakeHttp(HttpResponse(status=404), delay=0.0)
    cache: SecretCache = _cache(http, refresh_timeout=0.05)

    with pytest.raises(SecretRefreshTimeoutError):
        await cache.get()

    assert len(http.calls) >= 2


@pytest.mark.asyncio
async def test_set_source_changes_refresh_url() -> None:
    http = FakeHttp(_page())
    cache: SecretCache = _cache(http)

    cache.set_source("https://translate.google.de")
    await cache.get()

    assert cache.source_url == "https://translate.google.de"
    assert http.calls == ["https://translate.google.de"]
