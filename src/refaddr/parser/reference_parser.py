"""
Parser for the reference address expressions found in compiled programs.

Four expression shapes are recognized, each with a dereferenced variant
that is wrapped in square brackets:

    cast(fp, felt*)
    cast(fp + (-3), felt*)
    cast([fp + (-4)] + 1, felt*)
    [cast([fp + (-4)] + 1, felt*)]

The expression is split into segments on " + " and the number of segments
selects the shape. Within each segment a tokenizer isolates the register
name or numeric literal; surrounding brackets, the cast keyword and the
type annotation after the comma are structural noise.
"""

from __future__ import annotations

import re

from ..address import AddressDescriptor, NoRegister, Register, no_register
from ..input import BadInput, InputLocation
from .tokens import TokenEnum


class AddressParseError(BadInput):
    """Raised when a reference address expression cannot be parsed."""


class UnsupportedSegmentCount(AddressParseError):
    """Raised when an expression does not consist of 1, 2 or 3 segments."""

    def __init__(self, msg: str, count: int, *locations: InputLocation | None):
        super().__init__(msg, *locations)
        self.count = count


class NumericLiteralMalformed(AddressParseError):
    """Raised when an offset or immediate is not a valid integer literal."""


class RefToken(TokenEnum):
    number = r"-?[0-9]+"
    identifier = r"[A-Za-z_][A-Za-z0-9_]*"
    bracket = r"[\[\]()]"
    separator = r","
    operator = r"[+\-*]"
    other = r"."


_SEGMENT_SEPARATOR = re.compile(r" \+ ")

_OFFSET_MIN = -(1 << 31)
_OFFSET_MAX = (1 << 31) - 1


def _split_segments(location: InputLocation) -> list[InputLocation]:
    if not location.text.strip():
        return []
    return list(location.split(_SEGMENT_SEPARATOR))


def _head_tokens(segment: InputLocation) -> list[tuple[RefToken, InputLocation]]:
    """Return the tokens of a segment that precede the first separator."""
    head = []
    for kind, location in RefToken.tokenize(segment):
        if kind is RefToken.separator:
            break
        head.append((kind, location))
    return head


def _parse_register_token(segment: InputLocation, opener: str) -> Register | NoRegister:
    """
    Find the register name following the innermost `opener` bracket.
    Anything unexpected there results in `no_register`.
    """
    head = _head_tokens(segment)
    for index in range(len(head) - 1, -1, -1):
        kind, location = head[index]
        if kind is RefToken.bracket and location.text == opener:
            rest = head[index + 1 :]
            break
    else:
        return no_register
    match rest:
        case [(RefToken.identifier, location)]:
            return Register.from_token(location.text)
        case _:
            return no_register


def _literal_location(segment: InputLocation, what: str) -> InputLocation:
    """
    Isolate the numeric literal in a segment, ignoring any brackets
    around it and the type annotation following it.
    """
    head = [
        (kind, location)
        for kind, location in _head_tokens(segment)
        if kind is not RefToken.bracket
    ]
    match head:
        case [(RefToken.number, location)]:
            return location
        case []:
            raise NumericLiteralMalformed.with_text(f"missing {what}", segment)
        case _:
            location = head[0][1].cover(head[-1][1])
            raise NumericLiteralMalformed.with_text(f"bad {what}", location)


def _parse_literal(segment: InputLocation, what: str) -> tuple[int, InputLocation]:
    location = _literal_location(segment, what)
    try:
        return int(location.text), location
    except ValueError:
        # Decimal conversion is limited to sys.get_int_max_str_digits() digits.
        raise NumericLiteralMalformed.with_text(
            f"{what} has too many digits", location
        ) from None


def _parse_offset_literal(segment: InputLocation) -> int:
    value, location = _parse_literal(segment, "offset")
    if not _OFFSET_MIN <= value <= _OFFSET_MAX:
        raise NumericLiteralMalformed.with_text(
            "offset does not fit in 32 bits", location
        )
    return value


def _parse_immediate_literal(segment: InputLocation) -> int:
    value, _ = _parse_literal(segment, "immediate")
    return value


def _as_location(text: str | InputLocation) -> InputLocation:
    return InputLocation.from_string(text) if isinstance(text, str) else text


def _parse_address(location: InputLocation, dereference: bool) -> AddressDescriptor:
    segments = _split_segments(location)
    match segments:
        case [first]:
            return AddressDescriptor(
                _parse_register_token(first, "("), dereference=dereference
            )
        case [first, second]:
            return AddressDescriptor(
                _parse_register_token(first, "("),
                offset1=_parse_offset_literal(second),
                dereference=dereference,
            )
        case [first, second, third]:
            register = _parse_register_token(first, "[")
            offset1 = _parse_offset_literal(second)
            if dereference:
                return AddressDescriptor(
                    register,
                    offset1=offset1,
                    offset2=_parse_offset_literal(third),
                    dereference=True,
                    nested=True,
                )
            else:
                return AddressDescriptor(
                    register,
                    offset1=offset1,
                    immediate=_parse_immediate_literal(third),
                    dereference=False,
                    nested=True,
                )
        case _:
            count = len(segments)
            raise UnsupportedSegmentCount(
                f"expected 1 to 3 segments separated by \" + \", got {count:d}",
                count,
                location,
            )


def parse_dereference(text: str | InputLocation) -> AddressDescriptor:
    """
    Parse a dereferenced expression, such as `[cast(fp + (-3), felt*)]`.
    Raise `AddressParseError` if the expression is malformed.
    """
    return _parse_address(_as_location(text), True)


def parse_reference(text: str | InputLocation) -> AddressDescriptor:
    """
    Parse a bare reference expression, such as `cast(fp + (-3), felt*)`.
    Raise `AddressParseError` if the expression is malformed.
    """
    return _parse_address(_as_location(text), False)


def parse_value_address(text: str | InputLocation) -> AddressDescriptor:
    """
    Parse an expression of either kind, picking the dereferenced form if
    the first non-blank character is a square bracket.
    """
    location = _as_location(text)
    if location.text.lstrip().startswith("["):
        return parse_dereference(location)
    else:
        return parse_reference(location)
