from __future__ import annotations


def maybe_add_padding(hex_str: str) -> str:
    """
    Make a hexadecimal string suitable for decoding into bytes:
    if it has an odd number of digits, a single '0' is prepended.
    """
    if len(hex_str) % 2 != 0:
        return "0" + hex_str
    return hex_str


def decode_hex_felt(text: str) -> int:
    """
    Decode a hexadecimal data word, such as "0x40780017fff7fff", into
    a non-negative integer.
    Raise ValueError if the text contains non-hexadecimal characters.
    """
    digits = text[2:] if text[:2] in ("0x", "0X") else text
    try:
        data = bytes.fromhex(maybe_add_padding(digits))
    except ValueError:
        raise ValueError(f"bad hexadecimal number: {text}") from None
    return int.from_bytes(data, "big")
