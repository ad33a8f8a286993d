"""Caches shared by concurrent translate requests.

Provides the single-flight cache of the rotating tkk secret and the per-host session
cookie cache.
"""

from __future__ import annotations

from core.cache.cookie_cache import SessionCookieCache, parse_set_cookie
from core.cache.secret_cache import SecretCache

__all__: list[str] = ["SecretCache", "SessionCookieCache", "parse_set_cookie"]
