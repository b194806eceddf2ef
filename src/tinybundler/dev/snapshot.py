"""Directory snapshots — content hashes over a tree, compared between polls.

A snapshot is a set of ``"path:hash"`` strings.  Two snapshots differ when
their symmetric difference is non-empty: a file was added, removed, or its
bytes changed.  Touching a file without changing it is not a change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from tinybundler.resources.addressing import content_hash

if TYPE_CHECKING:
    from pathlib import Path

    from tinybundler._types import WatchHashSet


class DirectorySnapshotter(Protocol):
    """Computes and compares directory snapshots."""

    def compute(self, *dirs: Path) -> WatchHashSet: ...

    def changed(self, previous: WatchHashSet, current: WatchHashSet) -> bool: ...


def file_fingerprint(path: Path) -> str:
    """``"<path>:<hash of contents>"`` for one file."""
    return f"{path}:{content_hash(path.read_bytes())}"


class HashingSnapshotter:
    """DirectorySnapshotter that reads and hashes every file.

    Hidden files are included.  Directories that do not exist contribute
    nothing, so a backend or output directory may appear later.
    """

    def compute(self, *dirs: Path) -> WatchHashSet:
        entries: set[str] = set()
        for root in dirs:
            if not root.is_dir():
                continue
            for path in root.rglob("*"):
                try:
                    if path.is_file():
                        entries.add(file_fingerprint(path))
                except FileNotFoundError:
                    # Removed between listing and reading; the next poll sees it gone
                    continue
        return frozenset(entries)

    def changed(self, previous: WatchHashSet, current: WatchHashSet) -> bool:
        return bool(previous ^ current)
