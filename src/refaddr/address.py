from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import override


class Register(Enum):
    """Base pointer registers that a reference address can be relative to."""

    AP = "ap"
    """Allocation pointer."""

    FP = "fp"
    """Frame pointer."""

    @classmethod
    def from_token(cls, token: str) -> Register | NoRegister:
        """
        Look up the register named by the given source token.
        Any token other than "ap" or "fp" returns `no_register`.
        """
        try:
            return cls(token)
        except ValueError:
            return no_register

    @override
    def __str__(self) -> str:
        return self.value


class NoRegister(Enum):
    """
    Register value for addresses without a recognized base register.

    This is a regular outcome of parsing, not an error: callers must
    handle it next to the real registers.
    """

    instance = "none"
    """Singleton instance."""

    @override
    def __repr__(self) -> str:
        return "no_register"

    @override
    def __str__(self) -> str:
        return "?"

    def __bool__(self) -> bool:
        return False


no_register = NoRegister.instance


@dataclass(frozen=True, slots=True)
class AddressDescriptor:
    """
    Describes how to compute the memory location of a referenced value.

    The address is the value of `register` plus `offset1`. For two-level
    expressions the value stored at that address is read and then either
    `offset2` (dereferenced form) or `immediate` (reference form) is added;
    `nested` records that an expression has this two-level shape.
    If `dereference` is set, the final address is read once more.
    """

    register: Register | NoRegister
    offset1: int = 0
    offset2: int = 0
    immediate: int | None = None
    dereference: bool = False
    nested: bool = False
    """True for the two-level shape, which reads an intermediate address."""

    @override
    def __str__(self) -> str:
        if self.nested:
            inner = f"[{self.register} + ({self.offset1})]"
            second = self.offset2 if self.immediate is None else self.immediate
            expr = f"{inner} + {second}"
        elif self.offset1 != 0:
            expr = f"{self.register} + ({self.offset1})"
        else:
            expr = str(self.register)
        text = f"cast({expr}, felt*)"
        return f"[{text}]" if self.dereference else text
