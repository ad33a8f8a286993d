"""Asynchronous HTTP transport for the translation client.

Thin wrapper around ``aiohttp.ClientSession``. Unlike a typical REST helper it does not
raise on HTTP error statuses: callers need the status code (429 triggers a retry) and
the response headers (``Set-Cookie``), so every completed exchange is returned as an
``HttpResponse``. Only transport failures are raised, as ``AsyncCommError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession
from yarl import URL

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping


__all__: list[str] = ["AsyncCommError", "AsyncCommTimeoutError", "AsyncHttp", "HttpResponse"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST"]

CONNECT_TIMEOUT: Final[float] = 1.0

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
}


@dataclass(frozen=True)
class HttpResponse:
    """Completed HTTP exchange.

    Attributes:
        status (int): HTTP status code.
        reason (str): HTTP reason phrase.
        headers (Mapping[str, str]): Response headers; ``get`` returns the first value of a repeated header.
        body (bytes): Raw response body.
        url (str): Requested URL.
    """

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class AsyncHttp:
    """Asynchronous HTTP client shared by the translator and its caches.

    The session is created lazily on first use so the object can be constructed outside
    a running event loop (e.g. for the process-wide default translator).

    Args:
        total_timeout (float): Total timeout of one request in seconds; 0 or less disables it.
        proxy (str | None): Optional proxy URL used for every request.
    """

    def __init__(self, *, total_timeout: float = 10.0, proxy: str | None = None) -> None:
        logger.info("%s initializing", self.__class__.__name__)
        logger.debug("'timeout': '%s', 'proxy': '%s'", total_timeout, proxy)
        self.__session: ClientSession | None = None
        self.total_timeout: float = total_timeout
        self.proxy: str | None = proxy or None

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Create the aiohttp session if there is none or it has been closed.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            _ = self.session
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Current session, recreated if it has not been created yet or was closed."""
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(headers=DEFAULT_HEADERS)
            logger.debug("%s session initialized", self.__class__.__name__)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        logger.info("%s session closed", self.__class__.__name__)

    def _build_timeout(self) -> aiohttp.ClientTimeout:
        if self.total_timeout <= 0:
            return aiohttp.ClientTimeout(total=None)
        if self.total_timeout < CONNECT_TIMEOUT:
            # a connect timeout longer than the total would never fire
            return aiohttp.ClientTimeout(total=self.total_timeout)
        return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=self.total_timeout)

    async def get(self, url: str, *, headers: dict[str, str] | None = None) -> HttpResponse:
        """Perform a GET request; ``url`` is sent as-is when it carries a query string."""
        return await self.request("GET", url, headers=headers)

    async def request(
        self,
        method: HTTPMethod,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: str | bytes | None = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Send one request and return the response whatever its status.

        Args:
            method (HTTPMethod): "GET" or "POST".
            url (str): Percent-encoded URL; it is not re-quoted.
            headers (dict[str, str] | None): Extra request headers.
            data (str | bytes | None): Request body.
            **kwargs: Passed through to ``ClientSession.request``.

        Returns:
            HttpResponse: Status, headers and raw body.

        Raises:
            AsyncCommTimeoutError: If the server did not answer in time.
            AsyncCommError: If the connection could not be established or was lost.
        """
        logger.debug("[%s] url=%s", method, url)

        try:
            async with self.session.request(
                method=method,
                url=URL(url, encoded=True),
                headers=headers,
                data=data,
                timeout=self._build_timeout(),
                proxy=self.proxy,
                allow_redirects=True,
                **kwargs,
            ) as resp:
                body: bytes = await resp.read()
                logger.debug("[%s] status=%s length=%d", method, resp.status, len(body))
                return HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=resp.headers,
                    body=body,
                    url=url,
                )

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not reachable."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = f"HTTP transport error: {err}"
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Transport level failure of an HTTP exchange (connection, protocol, timeout)."""


class AsyncCommTimeoutError(AsyncCommError):
    """The server did not answer within the configured timeout."""
