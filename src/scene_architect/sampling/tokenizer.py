"""Split freeform list text into unique candidate strings."""

from __future__ import annotations

import re
from typing import Iterable

_SEPARATORS = re.compile(r"[\n,]")


def unique_casefold(values: Iterable[str | None]) -> list[str]:
    """Trim ``values`` and keep the first occurrence of each case-insensitive key."""

    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        token = (value or "").strip()
        if not token:
            continue
        key = token.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(token)
    return unique


def tokenize(text: str | None) -> list[str]:
    """Return the comma/newline separated entries of ``text``.

    Entries are trimmed, blanks are dropped, and duplicates are removed
    case-insensitively while the first-seen spelling and order are kept::

        >>> tokenize("a, b,\\na")
        ['a', 'b']
    """

    if not text:
        return []
    return unique_casefold(_SEPARATORS.split(text))


__all__ = ["tokenize", "unique_casefold"]
