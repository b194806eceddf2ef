"""Alias resolution — map ``@/path?query`` tokens onto the frontend tree.

A token resolves only when its path part starts with the alias followed by a
slash and the resulting file exists.  Every other outcome is a silent miss:
plenty of quoted strings that look like references are not resources.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qs


@dataclass(frozen=True, slots=True)
class ResolvedResource:
    """A token resolved against the alias root.

    Attributes:
        path: Absolute path to an existing file.
        query: Raw query string after the first ``?``, or ``None``.

    """

    path: Path
    query: str | None = None

    @property
    def extension(self) -> str:
        """Lowercase file suffix including the dot (``".png"``)."""
        return self.path.suffix.lower()

    @property
    def params(self) -> dict[str, list[str]]:
        """Parsed query parameters; flags without a value map to ``[""]``."""
        if not self.query:
            return {}
        return parse_qs(self.query, keep_blank_values=True)

    def has_flag(self, name: str) -> bool:
        """Whether *name* appears in the query (``?worker``, ``?inline=1``)."""
        return name in self.params

    def param(self, name: str) -> str | None:
        """First value of query parameter *name*, or ``None``."""
        values = self.params.get(name)
        return values[0] if values else None


class AliasResolver:
    """Resolves alias tokens to files under *root*.

    Args:
        alias: Prefix used in source text (``"@"``).
        root: Directory the prefix stands for.

    """

    __slots__ = ("_alias", "_prefix", "_root")

    def __init__(self, alias: str, root: Path) -> None:
        self._alias = alias
        self._prefix = alias + "/"
        self._root = root

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, token: str) -> ResolvedResource | None:
        """Resolve *token*, returning ``None`` for anything that is not a resource."""
        try:
            path_part, sep, query = token.partition("?")
            if not path_part.startswith(self._prefix):
                return None
            candidate = self._root / path_part[len(self._prefix):]
            if not candidate.is_file():
                return None
            return ResolvedResource(path=candidate, query=query if sep else None)
        except (OSError, ValueError):
            return None
