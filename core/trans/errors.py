"""Exceptions raised by the translation client.

Transport failures (connection refused, timeouts) are not defined here; they are raised
by ``handlers.async_comm`` as ``AsyncCommError`` / ``AsyncCommTimeoutError`` and pass
through the client unchanged.
"""

from __future__ import annotations

__all__: list[str] = [
    "BulkTranslationCancelledError",
    "CookieError",
    "CookieRefreshError",
    "GoogleTransError",
    "HTTPStatusError",
    "HTTPTooManyRequests",
    "InvalidHostError",
    "InvalidSecretError",
    "ResponseFormatError",
    "SecretError",
    "SecretFetchError",
    "SecretNotFoundError",
    "SecretRefreshTimeoutError",
]


class GoogleTransError(Exception):
    """Base class of every error raised by the translation client."""


class InvalidSecretError(GoogleTransError):
    """The tkk secret is not of the form '<int>' or '<int>.<int>'."""


class SecretError(GoogleTransError):
    """The tkk secret could not be obtained."""


class SecretNotFoundError(SecretError):
    """The refresh page did not contain a tkk value."""


class SecretFetchError(SecretError):
    """The refresh page answered with an HTTP error status."""

    def __init__(self, status: int, url: str) -> None:
        self.status: int = status
        self.url: str = url
        super().__init__(f"couldn't fetch tkk from '{url}', status code: {status}")


class SecretRefreshTimeoutError(SecretError):
    """Every refresh attempt failed until the refresh deadline passed."""


class CookieError(GoogleTransError):
    pass


class InvalidHostError(CookieError):
    """The service URL does not point at a translate.google.* host."""


class CookieRefreshError(CookieError):
    """The session cookie could not be fetched or parsed."""


class HTTPStatusError(GoogleTransError):
    """The translation endpoint answered with a non-200 status."""

    def __init__(self, status: int, reason: str | None, url: str) -> None:
        self.status: int = status
        self.reason: str = reason or ""
        self.url: str = url
        status_text: str = f"{status} {self.reason}".strip()
        super().__init__(f"request status: {status_text} from {url}")


class HTTPTooManyRequests(HTTPStatusError):  # noqa: N818
    """HTTP 429 was still returned after the last retry."""


class ResponseFormatError(GoogleTransError):
    """The response body is not a well-formed nested array.

    If this happens for every request, the remote format has likely changed.
    """


class BulkTranslationCancelledError(GoogleTransError):
    """The bulk translation stream was cancelled by its caller."""
