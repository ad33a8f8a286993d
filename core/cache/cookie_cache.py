from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

from core.trans.errors import CookieRefreshError, InvalidHostError
from handlers.async_comm import AsyncCommError
from models.cache_models import CookieEntry
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from handlers.async_comm import AsyncHttp, HttpResponse


__all__: list[str] = ["SessionCookieCache", "parse_set_cookie"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SERVICE_HOST_PREFIX: Final[str] = "translate.google"
# "translate" is dropped from the hostname, so "translate.google.com" is keyed ".google.com"
PRODUCT_NAME: Final[str] = "translate"

EXPIRES_FORMATS: Final[tuple[str, ...]] = (
    "%a, %d-%b-%Y %H:%M:%S %Z",  # Google: Thu, 25-Feb-2021 15:15:28 GMT
    "%a, %d %b %Y %H:%M:%S %Z",  # RFC 1123
)


def _parse_expires(value: str) -> datetime:
    for fmt in EXPIRES_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    msg: str = f"unsupported cookie expiry format: '{value}'"
    raise CookieRefreshError(msg)


def parse_set_cookie(header: str) -> CookieEntry:
    """Parse one ``Set-Cookie`` header value.

    Example:
        ``NID=204=Au7r...; expires=Thu, 25-Feb-2021 15:15:28 GMT; path=/; domain=.google.cn; HttpOnly``

    Flag attributes (HttpOnly, Secure) and attributes the cache does not use
    (Max-Age, SameSite, Priority) are skipped.

    Raises:
        CookieRefreshError: If there is no ``name=value`` pair or the expiry cannot be parsed.
    """
    name: str = ""
    value: str = ""
    attributes: dict[str, str] = {}

    for part in header.split(";"):
        key, sep, val = part.strip().partition("=")
        if not sep:
            continue
        if not name:
            name, value = key, val
        else:
            attributes[key.lower()] = val

    if not name:
        msg: str = f"no cookie in Set-Cookie header: '{header}'"
        raise CookieRefreshError(msg)

    expires: datetime | None = _parse_expires(attributes["expires"]) if "expires" in attributes else None
    return CookieEntry(
        name=name,
        value=value,
        domain=attributes.get("domain", ""),
        path=attributes.get("path", ""),
        expires=expires,
    )


def _now() -> datetime:
    return datetime.now(UTC)


class SessionCookieCache:
    """Per host-family cache of the session cookie sent with translate requests.

    Cookies are keyed by what follows "translate" in the hostname, which matches the
    Domain attribute Google sets, so every regional host of one family shares a cookie.
    Refreshes are serialized by one lock; concurrent refreshes run one after another.
    """

    def __init__(self, http: AsyncHttp, *, clock: Callable[[], datetime] = _now) -> None:
        self._http: AsyncHttp = http
        self._clock: Callable[[], datetime] = clock
        self._cookies: dict[str, CookieEntry] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    @staticmethod
    def host_key(service_url: str) -> str:
        """Return the cache key of ``service_url``.

        Raises:
            InvalidHostError: If the hostname is not a translate.google.* host.
        """
        try:
            hostname: str = urlsplit(service_url).hostname or ""
        except ValueError as err:
            msg: str = f"invalid translate google service url: '{service_url}'"
            raise InvalidHostError(msg) from err

        if len(hostname) <= len(SERVICE_HOST_PREFIX) or not hostname.startswith(SERVICE_HOST_PREFIX):
            msg = f"invalid translate google service url: '{service_url}'"
            raise InvalidHostError(msg)
        return hostname[len(PRODUCT_NAME) :]

    def peek(self, service_url: str) -> CookieEntry | None:
        """Cached cookie for ``service_url`` regardless of expiry, without refreshing."""
        return self._cookies.get(self.host_key(service_url))

    async def get(self, service_url: str) -> CookieEntry:
        """Return an unexpired cookie for ``service_url``, refreshing it if needed.

        Raises:
            InvalidHostError: If the hostname is not a translate.google.* host.
            CookieRefreshError: If a refresh was needed and failed.
        """
        key: str = self.host_key(service_url)
        cookie: CookieEntry | None = self._cookies.get(key)
        if cookie is not None and cookie.is_valid(self._clock()):
            return cookie

        logger.debug("cookie for '%s' missing or expired", key)
        return await self.force_refresh(service_url, 0)

    async def force_refresh(self, service_url: str, delay: float) -> CookieEntry:
        """Wait ``delay`` seconds, then fetch a new cookie from ``service_url``.

        Used with a non-zero delay to back off after a 429 response.

        Raises:
            InvalidHostError: If the hostname is not a translate.google.* host.
            CookieRefreshError: If the request failed or returned no usable cookie.
        """
        key: str = self.host_key(service_url)

        async with self._lock:
            if delay > 0:
                logger.debug("waiting %.1fs before refreshing cookie for '%s'", delay, key)
                await asyncio.sleep(delay)

            try:
                response: HttpResponse = await self._http.get(service_url)
            except AsyncCommError as err:
                msg: str = f"couldn't fetch cookie from '{service_url}': {err}"
                raise CookieRefreshError(msg) from err

            header: str | None = response.headers.get("Set-Cookie")
            if not header:
                msg = f"no Set-Cookie header from '{service_url}' (status {response.status})"
                raise CookieRefreshError(msg)

            cookie: CookieEntry = parse_set_cookie(header)
            self._cookies[cookie.domain or key] = cookie
            logger.info("cookie '%s' refreshed for '%s', expires %s", cookie.name, cookie.domain or key, cookie.expires)
            return cookie
