from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Final
from urllib.parse import urlencode

from core.trans.token_signer import sign
from models.translation_models import PreparedRequest
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.cache.secret_cache import SecretCache
    from models.translation_models import TranslateParams


__all__: list[str] = ["RequestBuilder"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

TRANSLATE_PATH: Final[str] = "/translate_a/single"
FORM_CONTENT_TYPE: Final[str] = "application/x-www-form-urlencoded"

# response sections requested from the endpoint; the parser depends on this exact set
DATA_TYPES: Final[tuple[str, ...]] = ("at", "bd", "ex", "ld", "md", "qca", "rw", "rm", "ss", "t")


class RequestBuilder:
    """Composes translate requests, choosing GET or POST by the length of the GET URL.

    Long texts do not fit in a URL accepted by the server (or proxies on the way), so
    once the GET form reaches ``POST_THRESHOLD`` characters the text is moved into a
    form-encoded body and the remaining parameters stay in the query string.

    Attributes:
        POST_THRESHOLD (int): GET URL length from which a POST is sent instead.
    """

    POST_THRESHOLD: ClassVar[int] = 2000

    def __init__(self, secret_cache: SecretCache, *, post_threshold: int | None = None) -> None:
        self._secret_cache: SecretCache = secret_cache
        self.post_threshold: int = self.POST_THRESHOLD if post_threshold is None else post_threshold

    async def build(self, params: TranslateParams, service_url: str) -> PreparedRequest:
        """Sign ``params.text`` with the current secret and compose the request.

        Raises:
            SecretRefreshTimeoutError: If no valid secret could be obtained.
            InvalidSecretError: If the cached secret is malformed.
        """
        secret: str = await self._secret_cache.get()
        token: str = sign(params.text, secret)
        return self._compose(params, service_url, token)

    @staticmethod
    def _query_params(params: TranslateParams, token: str) -> list[tuple[str, str]]:
        src: str = params.src or "auto"
        query: list[tuple[str, str]] = [
            ("client", "webapp"),
            ("sl", src),
            ("tl", params.dest),
            ("hl", params.dest),
            ("ie", "UTF-8"),
            ("oe", "UTF-8"),
            ("otf", "1"),
            ("ssel", "0"),
            ("tsel", "0"),
            ("kc", "7"),
            ("tk", token),
        ]
        query.extend(("dt", data_type) for data_type in DATA_TYPES)
        return query

    def _compose(self, params: TranslateParams, service_url: str, token: str) -> PreparedRequest:
        base_url: str = service_url.rstrip("/") + TRANSLATE_PATH
        query: list[tuple[str, str]] = self._query_params(params, token)
        get_url: str = f"{base_url}?{urlencode([*query, ('q', params.text)])}"

        if len(get_url) < self.post_threshold:
            logger.debug("GET request, url length %d", len(get_url))
            return PreparedRequest(method="GET", url=get_url, service_url=service_url)

        logger.debug("POST request, url length %d >= %d", len(get_url), self.post_threshold)
        return PreparedRequest(
            method="POST",
            url=f"{base_url}?{urlencode(query)}",
            service_url=service_url,
            headers={"Content-Type": FORM_CONTENT_TYPE},
            body=urlencode([("q", params.text)]),
        )
