"""Models for translation requests and results.

Defines the request parameters, the values returned to callers and the intermediate
fields extracted from the raw response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

__all__: list[str] = [
    "BulkTranslationResult",
    "DetectionResult",
    "ParsedTranslation",
    "PreparedRequest",
    "TranslateParams",
    "TranslationResult",
]


@dataclass
class TranslateParams:
    """Translation request parameters.

    Attributes:
        src (str): Source language code, "auto" for detection. Empty is treated as "auto".
        dest (str): Target language code. Not validated by the client.
        text (str): Text to translate.
    """

    src: str = "auto"
    dest: str = ""
    text: str = ""


@dataclass(frozen=True)
class TranslationResult:
    """Translated text for one request.

    Attributes:
        params (TranslateParams): Parameters the request was sent with (src resolved).
        text (str): Translated text, sentence fragments joined in order.
        pronunciation (str): Transliteration of the translation, empty when absent.
    """

    params: TranslateParams
    text: str
    pronunciation: str = ""

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class DetectionResult:
    """Detected language of a text.

    Attributes:
        language (str): Detected language code.
        confidence (float): Confidence in [0.0, 1.0].
    """

    language: str
    confidence: float


@dataclass(frozen=True)
class BulkTranslationResult:
    """One item of a bulk translation stream.

    Exactly one of ``result`` and ``error`` is meaningful; when the stream is cancelled
    the last item can carry both.
    """

    params: TranslateParams
    result: TranslationResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ParsedTranslation:
    """Fields extracted from the raw response body."""

    text: str = ""
    pronunciation: str = ""
    detected_language: str = ""
    confidence: float = 0.0


@dataclass(frozen=True)
class PreparedRequest:
    """Fully composed request for the translate endpoint.

    Attributes:
        method (Literal["GET", "POST"]): HTTP method chosen by payload size.
        url (str): Already percent-encoded URL including the query string.
        service_url (str): Backend host the request targets, used for the cookie lookup.
        headers (dict[str, str]): Request headers (without the session cookie).
        body (str | None): Form-encoded body for POST, None for GET.
    """

    method: Literal["GET", "POST"]
    url: str
    service_url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
