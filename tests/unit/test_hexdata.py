from __future__ import annotations

from hypothesis import given
from hypothesis.strategies import text
from pytest import raises

from refaddr.hexdata import decode_hex_felt, maybe_add_padding

hex_digits = text(alphabet="0123456789abcdefABCDEF")
"""Strategy for generating strings of hexadecimal digits."""


def test_padding_odd() -> None:
    assert maybe_add_padding("abc") == "0abc"
    assert maybe_add_padding("1") == "01"


def test_padding_even() -> None:
    assert maybe_add_padding("abcd") == "abcd"
    assert maybe_add_padding("") == ""


@given(hex_digits)
def test_padding_property(digits: str) -> None:
    """Padding prepends at most a single zero and always yields an even length."""
    padded = maybe_add_padding(digits)
    assert len(padded) % 2 == 0
    assert padded.endswith(digits)
    assert len(padded) - len(digits) == len(digits) % 2
    assert int(padded or "0", 16) == int(digits or "0", 16)


def test_decode_felt() -> None:
    assert decode_hex_felt("0x1") == 1
    assert decode_hex_felt("0x40780017fff7fff") == 0x40780017FFF7FFF
    assert decode_hex_felt("0X208b7fff7fff7ffe") == 0x208B7FFF7FFF7FFE
    assert decode_hex_felt("ff") == 255


def test_decode_felt_bad() -> None:
    with raises(ValueError, match=r"^bad hexadecimal number: 0x12g4$"):
        decode_hex_felt("0x12g4")
