"""Models for the values held by the secret and cookie caches."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

__all__: list[str] = ["SECRET_SENTINEL", "CookieEntry", "SecretEntry", "hour_bucket"]

SECRET_SENTINEL: Final[str] = "0"


def hour_bucket(now_seconds: float) -> int:
    """Number of whole hours since the epoch, the validity unit of a tkk secret."""
    return math.floor(now_seconds * 1000 / 3600000)


@dataclass(frozen=True)
class SecretEntry:
    """Cached tkk secret.

    The integer part of the value is the hour bucket the secret was issued for, so the
    secret goes stale as soon as the wall clock enters the next hour.

    Attributes:
        value (str): Secret formatted "<int>.<int>", or the sentinel "0" before the first refresh.
    """

    value: str = SECRET_SENTINEL

    @property
    def validity_bucket(self) -> int | None:
        try:
            return math.floor(float(self.value))
        except (ValueError, OverflowError):
            return None

    def is_valid(self, now_seconds: float) -> bool:
        return self.validity_bucket == hour_bucket(now_seconds)


@dataclass(frozen=True)
class CookieEntry:
    """Session cookie issued by a translate.google.* host.

    Attributes:
        name (str): Cookie name (e.g. "NID").
        value (str): Cookie value, may itself contain '='.
        domain (str): Domain attribute (e.g. ".google.com"), the cache key.
        path (str): Path attribute.
        expires (datetime | None): Expiry (UTC). A cookie without expiry is never reused.
    """

    name: str
    value: str
    domain: str = ""
    path: str = ""
    expires: datetime | None = None

    @property
    def header_value(self) -> str:
        return f"{self.name}={self.value}"

    def is_valid(self, now: datetime) -> bool:
        return self.expires is not None and self.expires > now
