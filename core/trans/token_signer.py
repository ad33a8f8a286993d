"""Computes the ``tk`` request token from the text and the rotating ``tkk`` secret.

The remote endpoint recomputes this value and rejects the request on mismatch, so the
arithmetic below has to match the web client bit for bit.
"""

from __future__ import annotations

import re
from typing import Final

from core.trans.errors import InvalidSecretError

__all__: list[str] = ["sign"]

_SECRET_PATTERN: Final[re.Pattern[str]] = re.compile(r"^-?[0-9]+(?:\.-?[0-9]+)?$")

_BYTE_PROGRAM: Final[str] = "+-a^+6"
_FINAL_PROGRAM: Final[str] = "+-3^+b+-f"

_MASK32: Final[int] = 0xFFFFFFFF


def _parse_secret(secret: str) -> tuple[int, int]:
    if not isinstance(secret, str) or not _SECRET_PATTERN.match(secret.strip()):
        msg: str = f"Param tkk is invalid: {secret!r}"
        raise InvalidSecretError(msg)
    first, _, second = secret.strip().partition(".")
    return int(first), int(second) if second else 0


def _utf16_units(text: str) -> list[int]:
    units: list[int] = []
    for char in text:
        code: int = ord(char)
        if code < 0x10000:
            units.append(code)
        else:
            units.append((code - 0x10000) // 0x400 + 0xD800)
            units.append((code - 0x10000) % 0x400 + 0xDC00)
    return units


def _utf8_bytes(units: list[int]) -> list[int]:
    """UTF-8 style encoding of UTF-16 units, pairing surrogates like the web client does."""
    encoded: list[int] = []
    index: int = 0
    while index < len(units):
        unit: int = units[index]
        if unit < 128:
            encoded.append(unit)
        elif unit < 2048:
            encoded.append(unit >> 6 | 192)
            encoded.append(unit & 63 | 128)
        elif (unit & 0xFC00) == 0xD800 and index + 1 < len(units) and (units[index + 1] & 0xFC00) == 0xDC00:
            index += 1
            combined: int = 65536 + ((unit & 1023) << 10) + (units[index] & 1023)
            encoded.append(combined >> 18 | 240)
            encoded.append(combined >> 12 & 63 | 128)
            encoded.append(combined >> 6 & 63 | 128)
            encoded.append(combined & 63 | 128)
        else:
            encoded.append(unit >> 12 | 224)
            encoded.append(unit >> 6 & 63 | 128)
            encoded.append(unit & 63 | 128)
        index += 1
    return encoded


def _mix(value: int, program: str) -> int:
    # each 3-char group: (combine op, shift direction, shift amount)
    for pos in range(0, len(program) - 2, 3):
        amount_char: str = program[pos + 2]
        amount: int = ord(amount_char) - 87 if amount_char >= "a" else int(amount_char)
        shifted: int = (value % 0x100000000) >> amount if program[pos + 1] == "+" else value << amount
        value = (value + shifted) & _MASK32 if program[pos] == "+" else value ^ shifted
    return value


def sign(text: str, secret: str) -> str:
    """Return the ``tk`` token for ``text``.

    Args:
        text (str): Text that will be sent as the ``q`` parameter.
        secret (str): Current tkk secret, ``"<int>.<int>"``.

    Returns:
        str: Token of the form ``"<int>.<int>"``.

    Raises:
        InvalidSecretError: If ``secret`` is not one or two dot-separated integers.
    """
    first, second = _parse_secret(secret)

    acc: int = first
    for byte in _utf8_bytes(_utf16_units(text)):
        acc = _mix(acc + byte, _BYTE_PROGRAM)
    acc = _mix(acc, _FINAL_PROGRAM)

    acc ^= second
    if acc < 0:
        acc = (acc & 0x7FFFFFFF) + 0x80000000
    acc %= 1_000_000

    return f"{acc}.{acc ^ first}"
