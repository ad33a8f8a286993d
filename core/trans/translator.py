from __future__ import annotations

import asyncio
import contextlib
import random
from dataclasses import replace
from typing import TYPE_CHECKING, ClassVar, Self

from core.cache.cookie_cache import SessionCookieCache
from core.cache.secret_cache import SecretCache
from core.trans.dispatcher import Dispatcher
from core.trans.errors import BulkTranslationCancelledError, GoogleTransError
from core.trans.request_builder import RequestBuilder
from core.trans.response_parser import parse
from handlers.async_comm import AsyncCommError, AsyncHttp
from models.config_models import DEFAULT_SERVICE_URL
from models.translation_models import (
    BulkTranslationResult,
    DetectionResult,
    TranslateParams,
    TranslationResult,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterable, AsyncIterator, Iterable

    from models.config_models import Config
    from models.translation_models import ParsedTranslation, PreparedRequest


__all__: list[str] = ["Translator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DETECT_TARGET_LANGUAGE: str = "en"


class Translator:
    """Client for the public Google Translate web endpoint.

    Owns the secret cache, the cookie cache and the HTTP session; instances share
    nothing with each other. ``Translator.default()`` returns the process-wide instance
    used when the caller does not need its own.

    Args:
        service_urls (Iterable[str] | None): Backend hosts to spread requests over. The default
            host is always part of the list.
        secret_source (str | None): Page the tkk secret is scraped from. Defaults to the default host.
        http (AsyncHttp | None): Transport to use; a new one is created when omitted.
        timeout (float): Total timeout of one HTTP request when ``http`` is created here.
        proxy (str | None): Proxy URL when ``http`` is created here.
    """

    _default: ClassVar[Translator | None] = None

    def __init__(
        self,
        service_urls: Iterable[str] | None = None,
        *,
        secret_source: str | None = None,
        http: AsyncHttp | None = None,
        timeout: float = 10.0,
        proxy: str | None = None,
        secret_retry_delay: float | None = None,
        secret_refresh_timeout: float | None = None,
        max_attempts: int | None = None,
        rate_limit_backoff: float | None = None,
        post_threshold: int | None = None,
    ) -> None:
        self.service_urls: list[str] = self._merge_service_urls(service_urls)
        self._http: AsyncHttp = http if http is not None else AsyncHttp(total_timeout=timeout, proxy=proxy)

        self.secret_cache = SecretCache(
            self._http,
            secret_source or DEFAULT_SERVICE_URL,
            retry_delay=secret_retry_delay,
            refresh_timeout=secret_refresh_timeout,
        )
        self.cookie_cache = SessionCookieCache(self._http)
        self._builder = RequestBuilder(self.secret_cache, post_threshold=post_threshold)
        self._dispatcher = Dispatcher(
            self._http,
            self.cookie_cache,
            max_attempts=max_attempts,
            rate_limit_backoff=rate_limit_backoff,
        )
        logger.info("%s initialized with %d service url(s)", self.__class__.__name__, len(self.service_urls))

    @classmethod
    def from_config(cls, config: Config) -> Self:
        """Build a translator from a loaded configuration.

        The ``[GENERAL]`` section configures the namespace logger; if logging was
        already configured only the level is changed.
        """
        logger_utils = LoggerUtils(config.GENERAL.LOG_FILE, level=config.GENERAL.LOG_LEVEL)
        logger_utils.set_level(config.GENERAL.LOG_LEVEL)
        logger.info("log level: %s", logger_utils.get_level().name)
        return cls(
            config.TRANSLATION.SERVICE_URLS,
            secret_source=config.TRANSLATION.SECRET_SOURCE,
            timeout=config.TRANSLATION.TIMEOUT,
            proxy=config.TRANSLATION.PROXY or None,
            secret_retry_delay=config.SECRET.RETRY_DELAY,
            secret_refresh_timeout=config.SECRET.REFRESH_TIMEOUT,
            max_attempts=config.DISPATCHER.MAX_ATTEMPTS,
            rate_limit_backoff=config.DISPATCHER.RATE_LIMIT_BACKOFF,
            post_threshold=config.DISPATCHER.POST_THRESHOLD,
        )

    @classmethod
    def default(cls) -> Translator:
        """Return the process-wide translator, creating it on first use.

        The instance holds an aiohttp session and asyncio primitives bound to the event
        loop that first used them. Closing it releases the singleton, so the next call
        after ``close()`` builds a fresh one; close it before the loop ends when the
        process runs more than one loop.
        """
        if Translator._default is None:
            Translator._default = Translator()
        return Translator._default

    @staticmethod
    def _merge_service_urls(service_urls: Iterable[str] | None) -> list[str]:
        merged: list[str] = []
        for url in [*(service_urls or []), DEFAULT_SERVICE_URL]:
            url = url.strip().rstrip("/")
            if url and url not in merged:
                merged.append(url)
        return merged

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session; the process-wide instance is released as well."""
        await self._http.close()
        if Translator._default is self:
            Translator._default = None
        logger.info("'%s' process termination", self.__class__.__name__)

    def _pick_service_url(self) -> str:
        return random.choice(self.service_urls)  # noqa: S311

    async def _do(self, params: TranslateParams) -> ParsedTranslation:
        service_url: str = self._pick_service_url()
        request: PreparedRequest = await self._builder.build(params, service_url)
        body: bytes = await self._dispatcher.send(request)
        return parse(body)

    async def translate(self, params: TranslateParams) -> TranslationResult:
        """Translate ``params.text`` from ``params.src`` (default "auto") to ``params.dest``.

        Raises:
            GoogleTransError: If the secret, the cookie, the request or the parsing failed.
            AsyncCommError: On transport failure.
        """
        if not params.src:
            params = replace(params, src="auto")
        logger.debug("'text': '%s', 'src': '%s', 'dest': '%s'", params.text, params.src, params.dest)

        parsed: ParsedTranslation = await self._do(params)
        logger.info("translation completed (%s > %s)", params.src, params.dest)
        return TranslationResult(params=params, text=parsed.text, pronunciation=parsed.pronunciation)

    async def detect(self, text: str) -> DetectionResult:
        """Detect the language of ``text``.

        Raises:
            GoogleTransError: If the secret, the cookie, the request or the parsing failed.
            AsyncCommError: On transport failure.
        """
        parsed: ParsedTranslation = await self._do(TranslateParams(src="auto", dest=DETECT_TARGET_LANGUAGE, text=text))
        logger.info("language detected: %s (%.2f)", parsed.detected_language, parsed.confidence)
        return DetectionResult(language=parsed.detected_language, confidence=parsed.confidence)

    async def bulk_translate(
        self,
        inputs: AsyncIterable[TranslateParams] | Iterable[TranslateParams],
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[BulkTranslationResult]:
        """Translate ``inputs`` one after another, yielding one result per input in order.

        Failures are reported in ``BulkTranslationResult.error`` instead of being raised.
        When ``cancel_event`` is set, the item in progress still finishes and is yielded
        as the last item with ``error`` replaced by ``BulkTranslationCancelledError``;
        no further input is consumed.
        """
        cancel: asyncio.Event = cancel_event if cancel_event is not None else asyncio.Event()
        iterator: AsyncIterator[TranslateParams] = _aiter(inputs)

        while not cancel.is_set():
            params: TranslateParams | None = await _next_or_cancel(iterator, cancel)
            if params is None:
                return

            result: TranslationResult | None = None
            error: Exception | None = None
            try:
                result = await self.translate(params)
            except (GoogleTransError, AsyncCommError) as err:
                logger.warning("bulk item failed: %s", err)
                error = err

            if cancel.is_set():
                logger.info("bulk translation cancelled")
                yield BulkTranslationResult(
                    params=params,
                    result=result,
                    error=BulkTranslationCancelledError("bulk translation cancelled"),
                )
                return

            yield BulkTranslationResult(params=params, result=result, error=error)


async def _aiter(inputs: AsyncIterable[TranslateParams] | Iterable[TranslateParams]) -> AsyncIterator[TranslateParams]:
    if hasattr(inputs, "__aiter__"):
        async for params in inputs:  # type: ignore[union-attr]
            yield params
    else:
        for params in inputs:  # type: ignore[union-attr]
            yield params


async def _next_input(iterator: AsyncIterator[TranslateParams]) -> TranslateParams | None:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return None


async def _next_or_cancel(iterator: AsyncIterator[TranslateParams], cancel: asyncio.Event) -> TranslateParams | None:
    """Wait for the next input; None once the input is exhausted or ``cancel`` fires first."""
    next_task: asyncio.Task[TranslateParams | None] = asyncio.create_task(_next_input(iterator))
    cancel_task: asyncio.Task[bool] = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel_task.cancel()

    if next_task.done():
        return next_task.result()

    next_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await next_task
    return None
