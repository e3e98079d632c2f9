from __future__ import annotations

import pytest

from refaddr.address import AddressDescriptor, NoRegister, Register, no_register
from refaddr.parser.reference_parser import parse_value_address


def test_register_from_token() -> None:
    assert Register.from_token("ap") is Register.AP
    assert Register.from_token("fp") is Register.FP
    assert Register.from_token("pc") is no_register
    assert Register.from_token("") is no_register


def test_no_register_singleton() -> None:
    """There is exactly one "no register" value and it is falsy."""
    assert list(NoRegister) == [no_register]
    assert not no_register
    assert repr(no_register) == "no_register"
    assert all(Register)


def test_descriptor_defaults() -> None:
    descriptor = AddressDescriptor(Register.AP)
    assert descriptor.offset1 == 0
    assert descriptor.offset2 == 0
    assert descriptor.immediate is None
    assert not descriptor.dereference
    assert not descriptor.nested


@pytest.mark.parametrize(
    "text",
    (
        "[cast(fp, felt*)]",
        "[cast(fp + (-3), felt*)]",
        "[cast([fp + (-4)] + 1, felt*)]",
        "cast(fp, felt*)",
        "cast(fp + (-3), felt*)",
        "cast([fp + (-4)] + 1, felt*)",
    ),
)
def test_descriptor_str(text: str) -> None:
    """A descriptor is formatted in the shape it was parsed from."""
    assert str(parse_value_address(text)) == text


def test_descriptor_str_no_register() -> None:
    assert str(AddressDescriptor(no_register, offset1=2)) == "cast(? + (2), felt*)"


def test_descriptor_str_nested_zero() -> None:
    """A two-level expression keeps its shape when the second part is zero."""
    text = "[cast([fp + (-4)] + 0, felt*)]"
    descriptor = parse_value_address(text)
    assert descriptor.nested
    assert descriptor.offset2 == 0
    assert str(descriptor) == text
    text = "cast([ap + (0)] + 0, felt*)"
    assert str(parse_value_address(text)) == text
