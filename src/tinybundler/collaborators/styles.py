"""Stylesheet compilation — plain ``@import`` expansion or Tailwind, plus rcssmin.

``CssCompiler`` inlines relative imports from the stylesheet's own directory so
a single artifact is written per referenced stylesheet.  Remote and alias
imports are left in place; alias imports are picked up later as ordinary
references.

``TailwindCompiler`` runs the ``tailwindcss`` CLI, which scans the files around
the stylesheet for candidate class names and emits only the utilities in use.
"""

from __future__ import annotations

import asyncio
import itertools
import re
from typing import TYPE_CHECKING

import rcssmin

from tinybundler._errors import CollaboratorError

if TYPE_CHECKING:
    from pathlib import Path

_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*)?(["'])(?P<target>[^"']+)\1\s*\)?\s*(?P<media>[^;]*);""",
)

# Targets starting with these are never inlined
_EXTERNAL_PREFIXES = ("http:", "https:", "//", "data:")


class CssCompiler:
    """StylesheetCompiler that expands local imports and optionally minifies.

    Args:
        alias: Frontend alias; imports under it are not inlined.
        minify: Minify with ``rcssmin`` (production builds).

    """

    def __init__(self, alias: str, *, minify: bool = False) -> None:
        self._alias_prefix = alias + "/"
        self._minify = minify

    async def compile(self, source_path: Path) -> str:
        css = self._expand(source_path, frozenset())
        if self._minify:
            css = await asyncio.to_thread(rcssmin.cssmin, css)
        return css

    def _expand(self, path: Path, seen: frozenset[Path]) -> str:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"cannot read {path}: {exc}"
            raise CollaboratorError("css", msg) from exc

        seen = seen | {path.resolve()}

        def _inline(match: re.Match[str]) -> str:
            target = match.group("target")
            if target.startswith(_EXTERNAL_PREFIXES) or target.startswith(self._alias_prefix):
                return match.group(0)
            dep = (path.parent / target).resolve()
            if dep in seen:
                msg = f"circular @import of {dep} from {path}"
                raise CollaboratorError("css", msg)
            if not dep.is_file():
                msg = f"@import target {target!r} not found from {path}"
                raise CollaboratorError("css", msg)
            body = self._expand(dep, seen)
            media = match.group("media").strip()
            if media:
                return f"@media {media} {{\n{body}\n}}"
            return body

        return _IMPORT_RE.sub(_inline, text)


class TailwindCompiler:
    """StylesheetCompiler backed by the ``tailwindcss`` executable.

    The CLI runs from the stylesheet's directory, which is where Tailwind
    starts looking for candidate classes, and resolves ``@import`` itself.
    Minification is left to ``rcssmin`` because Tailwind's own minifier may
    unquote ``url()`` values and hide alias references from the scanner.

    Args:
        scratch: Directory for the compiler's output files.
        minify: Minify with ``rcssmin`` (production builds).
        executable: tailwindcss binary name or path.

    """

    def __init__(
        self,
        scratch: Path,
        *,
        minify: bool = False,
        executable: str = "tailwindcss",
    ) -> None:
        self._scratch = scratch
        self._minify = minify
        self._executable = executable
        self._counter = itertools.count()

    async def compile(self, source_path: Path) -> str:
        self._scratch.mkdir(parents=True, exist_ok=True)
        output = self._scratch / f"tailwind-{next(self._counter)}.css"
        try:
            proc = await asyncio.create_subprocess_exec(
                self._executable,
                "--input", str(source_path),
                "--output", str(output),
                cwd=source_path.parent,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            msg = f"{self._executable!r} not found on PATH"
            raise CollaboratorError("tailwind", msg) from exc

        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            msg = f"exited with status {proc.returncode} for {source_path}: {detail}"
            raise CollaboratorError("tailwind", msg)

        try:
            css = output.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"no output written for {source_path}: {exc}"
            raise CollaboratorError("tailwind", msg) from exc
        if self._minify:
            css = await asyncio.to_thread(rcssmin.cssmin, css)
        return css
