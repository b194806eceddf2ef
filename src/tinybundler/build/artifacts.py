"""Output tree handling — cleaning, page writes, and the end-of-build listing."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

# Markup extension every rendered template is written with
PAGE_SUFFIX = ".html"


@dataclass(frozen=True, slots=True)
class OutputEntry:
    """One file in the finished output tree.

    Attributes:
        name: Path relative to the bundle directory, POSIX separators.
        size_bytes: File size.

    """

    name: str
    size_bytes: int


def clean_output(bundle_dir: Path) -> None:
    """Remove and recreate the bundle directory."""
    if bundle_dir.exists():
        shutil.rmtree(bundle_dir)
    bundle_dir.mkdir(parents=True, exist_ok=True)


def remove_scratch(temp_dir: Path) -> None:
    """Delete the per-build scratch directory if present."""
    shutil.rmtree(temp_dir, ignore_errors=True)


def page_path(bundle_dir: Path, template_name: str) -> Path:
    """Output path for a rendered template (``blog/post`` -> ``blog/post.html``)."""
    return bundle_dir / f"{template_name}{PAGE_SUFFIX}"


def write_page(filepath: Path, html: str) -> int:
    """Write HTML content to a file, creating parent dirs as needed.

    Returns the size in bytes of the written file.

    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    data = html.encode("utf-8")
    filepath.write_bytes(data)
    return len(data)


def list_outputs(bundle_dir: Path) -> tuple[OutputEntry, ...]:
    """All files under *bundle_dir* (dot files included), sorted by name."""
    if not bundle_dir.is_dir():
        return ()
    entries = [
        OutputEntry(
            name=path.relative_to(bundle_dir).as_posix(),
            size_bytes=path.stat().st_size,
        )
        for path in bundle_dir.rglob("*")
        if path.is_file()
    ]
    return tuple(sorted(entries, key=lambda e: e.name))


def format_file_size(size_bytes: int) -> str:
    """Human-readable size with decimal units (``512 bytes``, ``1.5 KB``, ``2.00 MB``)."""
    kb = 1000
    mb = kb * 1000
    if size_bytes >= mb:
        return f"{size_bytes / mb:.2f} MB"
    if size_bytes >= kb:
        return f"{size_bytes / kb:.1f} KB"
    return f"{size_bytes} bytes"
