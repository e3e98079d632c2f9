from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, override

from .address import AddressDescriptor
from .input import BadInput, ErrorCollector, InputLocation
from .parser.reference_parser import parse_value_address


@dataclass(frozen=True, slots=True)
class ApTracking:
    """Identifies the allocation pointer state that a reference is valid in."""

    group: int
    offset: int


@dataclass(frozen=True, slots=True)
class Reference:
    """A single entry from the reference table of a compiled program."""

    pc: int | None
    value: AddressDescriptor
    ap_tracking: ApTracking


class ReferenceTable(Mapping[int, Reference]):
    """
    The successfully loaded entries of a reference table, by their index
    in the original table.
    Indices of entries that failed to load are absent.
    """

    def __init__(self, references: Mapping[int, Reference], size: int):
        self._references = dict(references)
        self.size = size
        """Number of entries in the original table, including failed ones."""

    @override
    def __getitem__(self, index: int) -> Reference:
        return self._references[index]

    @override
    def __iter__(self) -> Iterator[int]:
        return iter(self._references)

    @override
    def __len__(self) -> int:
        return len(self._references)

    @override
    def __repr__(self) -> str:
        return f"ReferenceTable({self._references!r}, size={self.size:d})"


def _require_int(entry: Mapping[str, Any], key: str, what: str) -> int:
    value = entry.get(key)
    # bool is a subclass of int, but never a valid index or offset.
    if not isinstance(value, int) or isinstance(value, bool):
        raise BadInput(f'{what} has no integer "{key}" field')
    return value


def _load_reference(entry: Any, location_path: str) -> Reference:
    if not isinstance(entry, Mapping):
        raise BadInput("reference entry is not an object")

    value = entry.get("value")
    if not isinstance(value, str):
        raise BadInput('reference entry has no "value" expression')
    descriptor = parse_value_address(InputLocation.from_string(value, location_path))

    pc = entry.get("pc")
    if pc is not None:
        pc = _require_int(entry, "pc", "reference entry")

    tracking = entry.get("ap_tracking_data")
    if not isinstance(tracking, Mapping):
        raise BadInput('reference entry has no "ap_tracking_data" object')
    ap_tracking = ApTracking(
        _require_int(tracking, "group", "AP tracking data"),
        _require_int(tracking, "offset", "AP tracking data"),
    )

    return Reference(pc, descriptor, ap_tracking)


def load_references(
    entries: Iterable[Any],
    collector: ErrorCollector,
    path: str = "<references>",
) -> ReferenceTable:
    """
    Load the entries of a reference table.

    Entries that fail to load are reported to the given collector and
    left out of the returned table; loading continues with the next entry.
    To abort on any error instead, call this inside `collector.check()`.
    """
    references = {}
    size = 0
    for index, entry in enumerate(entries):
        size += 1
        location_path = f"{path}: reference {index:d}"
        try:
            references[index] = _load_reference(entry, location_path)
        except BadInput as ex:
            if ex.locations:
                collector.report(ex)
            else:
                collector.error(str(ex), location=location_path)
    return ReferenceTable(references, size)


def load_program_references(
    path: Path, collector: ErrorCollector
) -> ReferenceTable:
    """
    Load the reference table from a compiled program in JSON format.

    A program without a reference manager has an empty table.
    Raise OSError if the file cannot be read and ValueError if it does not
    contain valid JSON.
    """
    with path.open(encoding="utf-8") as stream:
        program = json.load(stream)

    if not isinstance(program, Mapping):
        collector.error("program is not a JSON object", location=str(path))
        return ReferenceTable({}, 0)

    manager = program.get("reference_manager")
    if manager is None:
        collector.warning("program has no reference manager", location=str(path))
        return ReferenceTable({}, 0)
    entries = manager.get("references") if isinstance(manager, Mapping) else None
    if not isinstance(entries, list):
        collector.error(
            'reference manager has no "references" list', location=str(path)
        )
        return ReferenceTable({}, 0)

    return load_references(entries, collector, str(path))
