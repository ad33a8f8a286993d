from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, ClassVar

from core.trans.errors import HTTPStatusError, HTTPTooManyRequests
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.cache.cookie_cache import SessionCookieCache
    from handlers.async_comm import AsyncHttp, HttpResponse
    from models.cache_models import CookieEntry
    from models.translation_models import PreparedRequest


__all__: list[str] = ["Dispatcher"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class Dispatcher:
    """Sends prepared translate requests with the session cookie attached.

    Only rate limiting is retried here: a 429 forces a cookie refresh after a short
    back-off and the request is sent again, up to ``MAX_ATTEMPTS`` attempts in total.
    Every other non-200 status fails at once, and transport errors from ``AsyncHttp``
    propagate unchanged.

    Attributes:
        MAX_ATTEMPTS (int): Attempts per request, the first one included.
        RATE_LIMIT_BACKOFF_SEC (float): Delay before the cookie refresh that follows a 429.
    """

    MAX_ATTEMPTS: ClassVar[int] = 3
    RATE_LIMIT_BACKOFF_SEC: ClassVar[float] = 3.0

    def __init__(
        self,
        http: AsyncHttp,
        cookie_cache: SessionCookieCache,
        *,
        max_attempts: int | None = None,
        rate_limit_backoff: float | None = None,
    ) -> None:
        self._http: AsyncHttp = http
        self._cookie_cache: SessionCookieCache = cookie_cache
        self.max_attempts: int = max(1, self.MAX_ATTEMPTS if max_attempts is None else max_attempts)
        self.rate_limit_backoff: float = (
            self.RATE_LIMIT_BACKOFF_SEC if rate_limit_backoff is None else rate_limit_backoff
        )

    async def send(self, request: PreparedRequest) -> bytes:
        """Send ``request`` and return the body of the 200 response.

        Raises:
            HTTPTooManyRequests: If the last attempt was still rate limited.
            HTTPStatusError: On any other non-200 status.
            InvalidHostError, CookieRefreshError: If no session cookie could be obtained.
            AsyncCommError: On transport failure.
        """
        for attempt in range(1, self.max_attempts + 1):
            cookie: CookieEntry = await self._cookie_cache.get(request.service_url)
            headers: dict[str, str] = {**request.headers, "Cookie": cookie.header_value}

            logger.debug("[%s] attempt %d/%d", request.method, attempt, self.max_attempts)
            response: HttpResponse = await self._http.request(
                request.method, request.url, headers=headers, data=request.body
            )

            if response.status == HTTPStatus.OK:
                return response.body

            if response.status != HTTPStatus.TOO_MANY_REQUESTS:
                logger.error("translate request failed: %s %s", response.status, response.reason)
                raise HTTPStatusError(response.status, response.reason, request.service_url)

            if attempt == self.max_attempts:
                break

            logger.warning(
                "rate limited by '%s' (attempt %d/%d), refreshing cookie in %.1fs",
                request.service_url,
                attempt,
                self.max_attempts,
                self.rate_limit_backoff,
            )
            await self._cookie_cache.force_refresh(request.service_url, self.rate_limit_backoff)

        logger.error("still rate limited by '%s' after %d attempts", request.service_url, self.max_attempts)
        raise HTTPTooManyRequests(response.status, response.reason, request.service_url)
