from __future__ import annotations

import asyncio
import re
import time
from typing import TYPE_CHECKING, ClassVar, Final

from core.trans.errors import SecretError, SecretFetchError, SecretNotFoundError, SecretRefreshTimeoutError
from handlers.async_comm import AsyncCommError
from models.cache_models import SecretEntry
from models.config_models import DEFAULT_SERVICE_URL
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from handlers.async_comm import AsyncHttp, HttpResponse


__all__: list[str] = ["SecretCache"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

TKK_PATTERN: Final[re.Pattern[str]] = re.compile(r"tkk:'(\d+\.\d+)'")


class SecretCache:
    """Holds the rotating tkk secret and refreshes it at most once per hour bucket.

    Refreshes are single-flight: the first caller that finds the secret stale becomes
    the refresher, every other caller waits on the condition until it finishes.

    * On success the new secret is published and all waiters wake up with it.
    * On failure exactly one waiter is woken; it finds the secret still stale and
      becomes the next refresher, while the failed refresher raises to its own caller.

    The state (``_entry``, ``_refreshing``) is only read or written while holding the
    condition's lock, so readers never see a half-updated entry.

    Attributes:
        RETRY_DELAY_SEC (float): Pause between two failed fetch attempts of one refresh.
        REFRESH_TIMEOUT_SEC (float): Give up a refresh once this much time has passed.
    """

    RETRY_DELAY_SEC: ClassVar[float] = 1.0
    REFRESH_TIMEOUT_SEC: ClassVar[float] = 60.0

    def __init__(
        self,
        http: AsyncHttp,
        source_url: str = DEFAULT_SERVICE_URL,
        *,
        retry_delay: float | None = None,
        refresh_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http: AsyncHttp = http
        self._source_url: str = source_url or DEFAULT_SERVICE_URL
        self._retry_delay: float = self.RETRY_DELAY_SEC if retry_delay is None else retry_delay
        self._refresh_timeout: float = self.REFRESH_TIMEOUT_SEC if refresh_timeout is None else refresh_timeout
        self._clock: Callable[[], float] = clock

        self._entry: SecretEntry = SecretEntry()
        self._refreshing: bool = False
        self._cond: asyncio.Condition = asyncio.Condition()

    @property
    def source_url(self) -> str:
        return self._source_url

    def set_source(self, url: str) -> None:
        """Change the page the secret is scraped from; takes effect on the next refresh."""
        logger.info("tkk source set to '%s'", url)
        self._source_url = url

    @property
    def current(self) -> SecretEntry:
        """Last published entry, without validity check or refresh."""
        return self._entry

    async def get(self) -> str:
        """Return a secret valid for the current hour, refreshing it if necessary.

        Returns:
            str: The tkk secret, "<int>.<int>".

        Raises:
            SecretRefreshTimeoutError: If this caller's refresh failed until the refresh deadline.
        """
        async with self._cond:
            while True:
                if self._entry.is_valid(self._clock()):
                    return self._entry.value
                if not self._refreshing:
                    self._refreshing = True
                    break
                logger.debug("tkk refresh in flight, waiting")
                await self._cond.wait()

        value: str | None = None
        try:
            value = await self._refresh()
        finally:
            async with self._cond:
                self._refreshing = False
                if value is not None:
                    self._entry = SecretEntry(value)
                    self._cond.notify_all()
                else:
                    # let one waiter take over the refresh
                    self._cond.notify(1)
        return value

    async def _refresh(self) -> str:
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        deadline: float = loop.time() + self._refresh_timeout
        attempt: int = 0

        while True:
            attempt += 1
            try:
                value: str = await self._fetch()
            except (SecretError, AsyncCommError) as err:
                if loop.time() + self._retry_delay >= deadline:
                    logger.error("tkk refresh failed after %d attempt(s): %s", attempt, err)
                    msg: str = f"couldn't refresh tkk from '{self._source_url}' within {self._refresh_timeout}s: {err}"
                    raise SecretRefreshTimeoutError(msg) from err
                logger.warning("tkk refresh attempt %d failed: %s", attempt, err)
                await asyncio.sleep(self._retry_delay)
            else:
                logger.info("tkk refreshed: %s", value)
                return value

    async def _fetch(self) -> str:
        """Scrape the secret from the source page once.

        Raises:
            SecretFetchError: If the page answered with status >= 400.
            SecretNotFoundError: If the page does not contain a tkk value.
            AsyncCommError: If the request itself failed.
        """
        url: str = self._source_url
        response: HttpResponse = await self._http.get(url)
        if response.status >= 400:
            raise SecretFetchError(response.status, url)

        match: re.Match[str] | None = TKK_PATTERN.search(response.text)
        if match is None:
            msg: str = f"couldn't find tkk in the page at '{url}'"
            raise SecretNotFoundError(msg)
        return match.group(1)
