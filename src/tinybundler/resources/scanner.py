"""Reference scanning and table-driven rewriting.

Scanning finds every quoted ``<alias>/...`` token in a text blob so each one
can be processed.  Rewriting is a separate single pass that replaces every
occurrence of every table key, quoted or not, so text that has already been
substituted is never scanned again.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class ReferenceMatch:
    """One quoted reference found in a text blob.

    Attributes:
        token: The reference without quotes (``@/a.png?w=10``).
        literal: The full quoted text (``"@/a.png?w=10"``).
        start: Offset of the opening quote.
        end: Offset just past the closing quote.

    """

    token: str
    literal: str
    start: int
    end: int


@lru_cache(maxsize=16)
def reference_pattern(alias: str) -> re.Pattern[str]:
    """Compiled pattern for quoted references under *alias*.

    The closing quote must match the opening one, and the token may not
    contain quotes or ``*`` (glob-like strings are never resources).
    """
    return re.compile(r"""(["'])(""" + re.escape(alias) + r"""/[^"'*]+)\1""")


def scan(text: str, alias: str) -> tuple[ReferenceMatch, ...]:
    """Return every quoted reference in *text*, in order of appearance."""
    return tuple(
        ReferenceMatch(
            token=m.group(2),
            literal=m.group(0),
            start=m.start(),
            end=m.end(),
        )
        for m in reference_pattern(alias).finditer(text)
    )


def rewrite(text: str, table: Mapping[str, str]) -> str:
    """Replace every occurrence of every *table* key in *text*.

    Keys are matched in one left-to-right pass, longest first, so a quoted
    literal (inline code) wins over the bare token inside it and
    ``@/a.png?w=10`` wins over ``@/a.png``.  Replacement text is never
    matched again.
    """
    if not table:
        return text
    keys = sorted(table, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda m: table[m.group(0)], text)
