"""Translation pipeline.

``Translator`` composes the request builder (secret cache + token signer), the
dispatcher (cookie cache + HTTP transport) and the positional response parser.
"""

from core.trans.dispatcher import Dispatcher
from core.trans.errors import (
    BulkTranslationCancelledError,
    CookieError,
    CookieRefreshError,
    GoogleTransError,
    HTTPStatusError,
    HTTPTooManyRequests,
    InvalidHostError,
    InvalidSecretError,
    ResponseFormatError,
    SecretError,
    SecretFetchError,
    SecretNotFoundError,
    SecretRefreshTimeoutError,
)
from core.trans.request_builder import RequestBuilder
from core.trans.token_signer import sign
from core.trans.translator import Translator

__all__: list[str] = [
    "BulkTranslationCancelledError",
    "CookieError",
    "CookieRefreshError",
    "Dispatcher",
    "GoogleTransError",
    "HTTPStatusError",
    "HTTPTooManyRequests",
    "InvalidHostError",
    "InvalidSecretError",
    "RequestBuilder",
    "ResponseFormatError",
    "SecretError",
    "SecretFetchError",
    "SecretNotFoundError",
    "SecretRefreshTimeoutError",
    "Translator",
    "sign",
]
