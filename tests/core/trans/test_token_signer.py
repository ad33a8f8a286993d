"""Unit tests for the tk token signer."""

from __future__ import annotations

import pytest

from core.trans.errors import InvalidSecretError
from core.trans.token_signer import _mix, _utf8_bytes, _utf16_units, sign


def test_sign_matches_reference_token() -> None:
    token: str = sign("hello\u00a0world", "443916.547221231")

    assert token == "68957.510801"


def test_sign_is_deterministic() -> None:
    first: str = sign("Go is an open source programming language.", "443916.547221231")
    second: str = sign("Go is an open source programming language.", "443916.547221231")

    assert first == second


def test_sign_result_has_two_integer_parts() -> None:
    token: str = sign("こんにちは 🌍", "443916.547221231")

    left, _, right = token.partition(".")
    assert left.isdigit()
    assert right.isdigit()
    assert int(left) < 1_000_000
    assert int(right) == int(left) ^ 443916


def test_sign_accepts_single_term_secret() -> None:
    token: str = sign("hello", "0")

    left, _, right = token.partition(".")
    assert left == right


@pytest.mark.parametrize("secret", ["", "abc", "1.2.3", "1.", ".5", "1.x", "1,2", " ", "\uff14\uff14.\uff15", "44.\u0665"])
def test_sign_rejects_invalid_secret(secret: str) -> None:
    with pytest.raises(InvalidSecretError):
        sign("hello", secret)


def test_utf16_units_split_astral_code_point() -> None:
    units: list[int] = _utf16_units("a\U0001f30d")

    assert units == [0x61, 0xD83C, 0xDF0D]


def test_utf8_bytes_match_standard_encoding() -> None:
    text = "aé€🌍"

    encoded: list[int] = _utf8_bytes(_utf16_units(text))

    assert bytes(encoded) == text.encode("utf-8")


def test_utf8_bytes_lone_surrogate_uses_three_byte_form() -> None:
    encoded: list[int] = _utf8_bytes([0xD800, 0x41])

    assert encoded == [0xED, 0xA0, 0x80, 0x41]


def test_mix_add_and_xor_steps() -> None:
    # "+-a": a + (a << 10), masked to 32 bits; "^+6": a ^ (a >> 6)
    value: int = _mix(1, "+-a")
    assert value == 1025

    value = _mix(value, "^+6")
    assert value == 1025 ^ (1025 >> 6)


def test_mix_masks_to_32_bits() -> None:
    value: int = _mix(0xFFFFFFFF, "+-a")

    assert 0 <= value <= 0xFFFFFFFF
