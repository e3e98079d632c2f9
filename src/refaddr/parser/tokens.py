from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum
from functools import cache
from re import Pattern
from typing import Self

from ..input import InputLocation


class TokenEnum(Enum):
    """
    Base class for token kinds.

    The value of each member is the regular expression matching that kind of
    token. When several kinds match at the same position, the member defined
    first wins. Whitespace is never part of a token.
    """

    def __init__(self, regex: str):
        self.regex = regex

    @classmethod
    def tokenize(cls, location: InputLocation) -> Iterator[tuple[Self, InputLocation]]:
        """
        Yield the kind and location of each token in the given location.
        Characters that match no token kind are skipped, like whitespace.
        """
        for match in _token_pattern(cls).finditer(location.line, *location.span):
            name = match.lastgroup
            if name is not None:
                yield cls[name], location.update_span(match.span(name))


@cache
def _token_pattern(token_class: type[TokenEnum]) -> Pattern[str]:
    alternatives = [r"\s+"]
    alternatives += (
        f"(?P<{name}>{token.regex})" for name, token in token_class.__members__.items()
    )
    return re.compile("|".join(alternatives))
