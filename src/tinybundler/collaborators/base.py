"""Collaborator interfaces — the transforms the pipeline delegates to.

The build pipeline never bundles JavaScript, compiles CSS, resizes images or
formats HTML itself.  It talks to these four protocols; ``default_collaborators``
wires up the concrete implementations, tests swap in fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tinybundler._types import SourceHook


@dataclass(frozen=True, slots=True)
class ScriptBundle:
    """Result of one script bundling job.

    Attributes:
        outputs: Entry source path -> absolute path of its written entry chunk
            (empty in inline mode).
        code: Bundled code text in inline mode, otherwise ``None``.

    """

    outputs: dict[Path, Path] = field(default_factory=dict)
    code: str | None = None


class ScriptBundler(Protocol):
    """Bundles JS/TS entry points."""

    async def bundle(
        self,
        entries: Sequence[Path],
        *,
        hook: SourceHook | None,
        out_dir: Path,
        inline: bool = False,
    ) -> ScriptBundle:
        """Bundle *entries*.

        *hook* is applied to every frontend source the entries import (the
        entries included) before bundling and may rewrite references found
        in it.  Sources outside that module graph are never passed to it.
        With ``inline=True`` exactly one entry is bundled and its code
        returned instead of written.
        """
        ...


class StylesheetCompiler(Protocol):
    """Compiles a stylesheet file to final CSS text."""

    async def compile(self, source_path: Path) -> str: ...


class ImageResizer(Protocol):
    """Resizes raw image bytes to a target width."""

    async def resize(self, data: bytes, width: int) -> bytes: ...


class MarkupFormatter(Protocol):
    """Pretty-prints HTML."""

    async def format(self, markup: str) -> str: ...


@dataclass(frozen=True, slots=True)
class Collaborators:
    """The four transforms a build needs."""

    scripts: ScriptBundler
    styles: StylesheetCompiler
    images: ImageResizer
    markup: MarkupFormatter
