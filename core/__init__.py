"""Core of the Google Translate web client.

This package contains the translation pipeline (token signing, request composition,
dispatch and response parsing) and the caches for the rotating secret and the
session cookie.
"""

from core.trans import (
    GoogleTransError,
    Translator,
)
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "GoogleTransError",
    "Translator",
]
