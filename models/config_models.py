"""Configuration data models for the translation client.

Each dataclass maps to one section of the INI file. Field defaults double as the type
hints used by ``config.loader`` when converting the INI strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

__all__: list[str] = [
    "DEFAULT_SERVICE_URL",
    "Config",
    "Dispatcher",
    "General",
    "Secret",
    "Translation",
]

DEFAULT_SERVICE_URL: Final[str] = "https://translate.google.com"


@dataclass
class General:
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""


@dataclass
class Translation:
    SERVICE_URLS: list[str] = field(default_factory=lambda: [DEFAULT_SERVICE_URL])
    SECRET_SOURCE: str = DEFAULT_SERVICE_URL
    TIMEOUT: float = 10.0
    PROXY: str = ""


@dataclass
class Secret:
    RETRY_DELAY: float = 1.0
    REFRESH_TIMEOUT: float = 60.0


@dataclass
class Dispatcher:
    MAX_ATTEMPTS: int = 3
    RATE_LIMIT_BACKOFF: float = 3.0
    POST_THRESHOLD: int = 2000


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    SECRET: Secret = field(default_factory=Secret)
    DISPATCHER: Dispatcher = field(default_factory=Dispatcher)
