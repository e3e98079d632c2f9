from __future__ import annotations

import json
from collections.abc import Iterator
from logging import getLogger
from pathlib import Path
from typing import Any

import pytest

from refaddr.input import LocationFormatter


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo changes to the root logger made by command line entry points."""

    root = getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, LocationFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def make_program(references: list[Any]) -> dict[str, Any]:
    """Return a minimal compiled program containing the given references."""

    return {
        "data": ["0x40780017fff7fff", "0x1", "0x208b7fff7fff7ffe"],
        "reference_manager": {"references": references},
    }


def reference_entry(value: str, pc: int = 0, group: int = 0, offset: int = 0) -> Any:
    return {
        "ap_tracking_data": {"group": group, "offset": offset},
        "pc": pc,
        "value": value,
    }


@pytest.fixture
def program_file(tmp_path: Path) -> Path:
    """A program file with two good references and one bad one in between."""

    path = tmp_path / "program.json"
    program = make_program(
        [
            reference_entry("[cast(fp + (-3), felt*)]", pc=0),
            reference_entry("cast(fp + (x), felt*)", pc=2),
            reference_entry("cast([fp + (-4)] + 1, felt*)", pc=5, group=1, offset=2),
        ]
    )
    with path.open("w") as out:
        json.dump(program, out)
    return path
