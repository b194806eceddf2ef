"""Shared test fixtures for tinybundler."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from tinybundler.collaborators import Collaborators, ScriptBundle
from tinybundler.config import BundlerConfig
from tinybundler.resources.addressing import content_hash

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tinybundler._types import SourceHook


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal project tree.

    Returns the project root with ``frontend/templates``, a PNG, a stylesheet
    and a script under ``frontend``.
    """
    frontend = tmp_path / "frontend"
    (frontend / "templates").mkdir(parents=True)
    (frontend / "img").mkdir()
    (frontend / "img" / "a.png").write_bytes(make_png(4, 2))
    (frontend / "css").mkdir()
    (frontend / "css" / "site.css").write_text("body { margin: 0; }\n")
    (frontend / "js").mkdir()
    (frontend / "js" / "app.ts").write_text('console.log("app");\n')
    return tmp_path


@pytest.fixture
def config(tmp_project: Path) -> BundlerConfig:
    """A non-production BundlerConfig rooted at ``tmp_project``."""
    return BundlerConfig(root=tmp_project, production=False)


@pytest.fixture
def fakes() -> Collaborators:
    """Collaborators that never leave the process."""
    return Collaborators(
        scripts=FakeScriptBundler(),
        styles=FakeStylesheetCompiler(),
        images=FakeImageResizer(),
        markup=FakeMarkupFormatter(),
    )


def make_png(width: int, height: int) -> bytes:
    """Encode a tiny grey RGB PNG without touching the filesystem."""

    def chunk(tag: bytes, payload: bytes) -> bytes:
        body = tag + payload
        return struct.pack(">I", len(payload)) + body + struct.pack(">I", zlib.crc32(body))

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    rows = b"".join(b"\x00" + b"\x80" * (3 * width) for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(rows))
        + chunk(b"IEND", b"")
    )


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


@dataclass
class BundleCall:
    entries: tuple[Path, ...]
    out_dir: Path
    inline: bool


@dataclass
class FakeScriptBundler:
    """Runs the hook over each entry and writes ``<stem>.<hash>.js``.

    Inline calls return the hooked source prefixed with ``/*inline*/``.
    """

    calls: list[BundleCall] = field(default_factory=list)

    async def bundle(
        self,
        entries: Sequence[Path],
        *,
        hook: SourceHook | None,
        out_dir: Path,
        inline: bool = False,
    ) -> ScriptBundle:
        self.calls.append(BundleCall(tuple(entries), out_dir, inline))
        sources: dict[Path, str] = {}
        for entry in entries:
            code = entry.read_text()
            if hook is not None:
                code = await hook(code, str(entry))
            sources[entry] = code

        if inline:
            (code,) = sources.values()
            return ScriptBundle(code=f"/*inline*/{code}")

        out_dir.mkdir(parents=True, exist_ok=True)
        outputs: dict[Path, Path] = {}
        for entry, code in sources.items():
            output = out_dir / f"{entry.stem}.{content_hash(code)}.js"
            output.write_text(code)
            outputs[entry] = output
        return ScriptBundle(outputs=outputs)


@dataclass
class FakeStylesheetCompiler:
    compiled: list[Path] = field(default_factory=list)

    async def compile(self, source_path: Path) -> str:
        self.compiled.append(source_path)
        return source_path.read_text()


@dataclass
class FakeImageResizer:
    widths: list[int] = field(default_factory=list)

    async def resize(self, data: bytes, width: int) -> bytes:
        self.widths.append(width)
        return f"w={width};".encode() + data


class FakeMarkupFormatter:
    async def format(self, markup: str) -> str:
        return markup
