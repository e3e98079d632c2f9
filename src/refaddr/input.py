from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from logging import ERROR, INFO, WARNING, Formatter, Logger, LogRecord, getLogger
from re import Pattern
from typing import Self, override


@dataclass(frozen=True, slots=True)
class InputLocation:
    """
    A span of text within a single line of input, for example part of a
    reference expression read from a compiled program.
    Errors carry locations so the offending text can be shown to the user.
    """

    path: str
    """Where the input came from; only used for reporting."""

    lineno: int
    """Line number, starting at 1, or -1 if the input has no lines."""

    line: str
    """The full text of the line that this location is part of."""

    span: tuple[int, int]
    """Start (inclusive) and end (exclusive) column of the location."""

    @classmethod
    def from_string(cls, text: str, path: str = "<string>") -> Self:
        return cls(path, -1, text, (0, len(text)))

    @property
    def text(self) -> str:
        return self.line[slice(*self.span)]

    def update_span(self, span: tuple[int, int]) -> InputLocation:
        return InputLocation(self.path, self.lineno, self.line, span)

    def cover(self, other: InputLocation) -> InputLocation:
        """Return the smallest location on this line spanning both locations."""
        assert other.line == self.line, (self, other)
        return self.update_span(
            (min(self.span[0], other.span[0]), max(self.span[1], other.span[1]))
        )

    def split(self, separator: Pattern[str]) -> Iterator[InputLocation]:
        """Yield the pieces of this location between matches of `separator`."""
        start, end = self.span
        for match in separator.finditer(self.line, start, end):
            yield self.update_span((start, match.start()))
            start = match.end()
        yield self.update_span((start, end))


class BadInput(Exception):
    """
    Raised for input that does not follow the expected grammar.
    The `locations` attribute holds the offending part(s) of the input.
    """

    @classmethod
    def with_text(cls, msg: str, location: InputLocation) -> Self:
        """Create an error whose message ends with the text at `location`."""
        return cls(f"{msg}: {location.text}", location)

    def __init__(self, msg: str, *locations: InputLocation | None):
        Exception.__init__(self, msg)
        self.locations = tuple(loc for loc in locations if loc is not None)


class ErrorCollector:
    """
    Logs and counts the problems found while loading input, so loading can
    continue after a bad entry and all problems get reported at once.

    A location, or a path when there is no text to point at, is passed to
    the logger as the `location` extra; `LocationFormatter` displays it.
    """

    def __init__(self, logger: Logger | None = None):
        self._logger = getLogger(__name__) if logger is None else logger
        self.problem_counter = ProblemCounter()
        self._errors: list[BadInput] = []

    @property
    def errors(self) -> Sequence[BadInput]:
        return self._errors

    def error(self, msg: str, *, location: str | InputLocation | None = None) -> None:
        self._logger.error("%s", msg, extra={"location": location})
        self.problem_counter.num_errors += 1
        self._errors.append(
            BadInput(msg, location if isinstance(location, InputLocation) else None)
        )

    def warning(self, msg: str, *, location: str | InputLocation | None = None) -> None:
        self._logger.warning("%s", msg, extra={"location": location})
        self.problem_counter.num_warnings += 1

    def report(self, ex: BadInput) -> None:
        """Log a caught `BadInput` as an error at its first location."""
        self.error(str(ex), location=ex.locations[0] if ex.locations else None)

    def summarize(self, path: str) -> None:
        """Log the error and warning counts for the given input."""
        counter = self.problem_counter
        self._logger.log(counter.level, "%s", counter, extra={"location": path})

    @contextmanager
    def check(self) -> Iterator[ErrorCollector]:
        """
        Collect errors within a context.

        Raise `DelayedError` on context close if any errors were reported
        on this collector within the context.
        """
        num_errors_before = len(self._errors)
        try:
            yield self
        except DelayedError as delayed:
            if delayed.collector is not self:
                raise
        errors = self._errors[num_errors_before:]
        if errors:
            delayed = DelayedError(_pluralize(len(errors), "error"), errors)
            delayed.collector = self
            raise delayed


class DelayedError(ExceptionGroup[BadInput]):
    """Raised at the end of a loading step in which errors were reported."""

    collector: ErrorCollector | None = None
    """The collector whose `check()` context raised this error."""


@dataclass(slots=True)
class ProblemCounter:
    num_errors: int = 0
    num_warnings: int = 0

    @property
    def level(self) -> int:
        """Log level matching the worst problem counted."""
        if self.num_errors > 0:
            return ERROR
        elif self.num_warnings > 0:
            return WARNING
        else:
            return INFO

    @override
    def __str__(self) -> str:
        return (
            f"{_pluralize(self.num_errors, 'error')} and "
            f"{_pluralize(self.num_warnings, 'warning')}"
        )


def _pluralize(count: int, noun: str) -> str:
    return f"{count:d} {noun}{'' if count == 1 else 's'}"


class LocationFormatter(Formatter):
    """
    Prefixes messages with the path from the `location` extra.
    For an `InputLocation`, the input line is shown below the message with
    the location's span marked by carets.
    """

    @override
    def format(self, record: LogRecord) -> str:
        msg = super().format(record)
        if record.levelno == ERROR:
            msg = f"ERROR: {msg}"
        elif record.levelno == WARNING:
            msg = f"warning: {msg}"

        location: str | InputLocation | None = getattr(record, "location", None)
        if location is None:
            return msg
        if isinstance(location, str):
            return f"{location}: {msg}"

        prefix = location.path
        if location.lineno != -1:
            prefix += f":{location.lineno:d}"
        start, end = location.span
        # An empty span is still marked by a single caret.
        marker = " " * start + "^" * max(end - start, 1)
        return "\n".join((f"{prefix}: {msg}", location.line, marker))
