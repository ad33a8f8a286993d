"""Data models for the translation client.

This package contains dataclass definitions for configuration, translation requests
and results, and the entries held by the secret and cookie caches.
"""

from __future__ import annotations

from models.cache_models import CookieEntry, SecretEntry
from models.config_models import DEFAULT_SERVICE_URL, Config
from models.translation_models import (
    BulkTranslationResult,
    DetectionResult,
    ParsedTranslation,
    PreparedRequest,
    TranslateParams,
    TranslationResult,
)

__all__: list[str] = [
    "DEFAULT_SERVICE_URL",
    "BulkTranslationResult",
    "Config",
    "CookieEntry",
    "DetectionResult",
    "ParsedTranslation",
    "PreparedRequest",
    "SecretEntry",
    "TranslateParams",
    "TranslationResult",
]
