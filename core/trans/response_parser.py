"""Positional parser for the ``translate_a/single`` response.

The endpoint answers with an undocumented nested array whose layout shifts between
requests (nulls in place of blocks, optional extra nesting). Rather than decoding it,
the parser scans the tokens and tracks a coordinate: one counter per open bracket,
holding the index of the current element at that depth. Fields are picked purely by
coordinate; this table is the contract with the remote service:

==========================================================  ==============================
Coordinate (depth: counters)                                Field
==========================================================  ==============================
depth 4, c[1] == 0, c[3] == 0                               translated text, appended
depth 4, c[0] == 0, c[1] == 0, c[2] == 1, c[3] == 2         pronunciation (position A)
depth 4, c[0] == 0, c[1] == 0, c[3] == 2                    pronunciation (position B)
depth 2, c[0] == 0, c[1] == 2                               detected source language
depth 2, c[0] == 0, c[1] == 6                               detection confidence
==========================================================  ==============================

Position B contains position A. Both are kept as observed in live responses; the
later write wins. ``null`` at any of these coordinates leaves the field unchanged.

Example (abridged)::

    [[["Hola","Hello",null,null,10],[null,null,"Óla","həˈlō"]],null,"en",null,null,null,0.94,...]
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Final

from core.trans.errors import ResponseFormatError
from models.translation_models import ParsedTranslation
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator


__all__: list[str] = ["parse", "tokenize"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

NULL: Final[str] = "null"

_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"""
    (?P<string>"(?:[^"\\]|\\.)*")    # quoted string, escapes kept
    | (?P<punct>[\[\],])             # structure
    | (?P<literal>[^\s\[\],"]+)      # number, null, true, false
    | (?P<space>\s+)
    | (?P<error>.)
    """,
    re.VERBOSE | re.DOTALL,
)


def tokenize(raw: str) -> Iterator[str]:
    """Yield structural tokens, strings (with their quotes) and bare literals.

    Raises:
        ResponseFormatError: On an unterminated string.
    """
    for match in _TOKEN_PATTERN.finditer(raw):
        kind: str | None = match.lastgroup
        if kind == "space":
            continue
        if kind == "error":
            msg: str = f"unterminated string at offset {match.start()}"
            raise ResponseFormatError(msg)
        yield match.group()


def _string_value(token: str) -> str:
    if not token.startswith('"'):
        return token
    try:
        return json.loads(token)
    except ValueError as err:
        msg: str = f"invalid string literal: {token[:40]}"
        raise ResponseFormatError(msg) from err


def _float_value(token: str) -> float:
    try:
        return float(token)
    except ValueError as err:
        msg: str = f"invalid confidence literal: {token[:40]}"
        raise ResponseFormatError(msg) from err


def _apply(result: ParsedTranslation, coord: list[int], token: str) -> None:
    if token == NULL:
        return

    depth: int = len(coord)
    if depth == 4:
        if coord[1] == 0 and coord[3] == 0:
            result.text += _string_value(token)
        if coord[0] == 0 and coord[1] == 0 and coord[2] == 1 and coord[3] == 2:
            result.pronunciation = _string_value(token)
        if coord[0] == 0 and coord[1] == 0 and coord[3] == 2:
            result.pronunciation = _string_value(token)
    elif depth == 2 and coord[0] == 0:
        if coord[1] == 2:
            result.detected_language = _string_value(token)
        elif coord[1] == 6:
            result.confidence = _float_value(token)


def parse(raw: bytes | str) -> ParsedTranslation:
    """Extract translation and detection fields from a response body.

    Missing blocks leave their fields at the defaults (empty string, 0.0).

    Raises:
        ResponseFormatError: If the body is not UTF-8, brackets are unbalanced or a matched
            token is malformed.
    """
    text: str
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    except UnicodeDecodeError as err:
        msg: str = f"response is not valid UTF-8 at offset {err.start}"
        raise ResponseFormatError(msg) from err
    result = ParsedTranslation()
    coord: list[int] = [-1]

    for token in tokenize(text):
        if not coord:
            msg = "unbalanced brackets in response"
            raise ResponseFormatError(msg)
        if token == "[":
            coord[-1] += 1
            coord.append(-1)
        elif token == "]":
            coord.pop()
        elif token == ",":
            continue
        else:
            coord[-1] += 1
            _apply(result, coord, token)

    if len(coord) != 1:
        msg = "truncated or unbalanced response"
        raise ResponseFormatError(msg)

    logger.debug("parsed response: %s", result)
    return result
