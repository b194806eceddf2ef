"""Shared type definitions for tinybundler."""

from collections.abc import Awaitable, Callable
from typing import Literal

# Mode of operation
type BundlerMode = Literal["dev", "bundle"]

# Symbolic resource reference as written in source text (e.g. "@/img/a.png?w=64")
type AliasToken = str

# Public URL path of a built artifact (e.g. "/assets/a.1x2y3z4w.png")
type Route = str

# Per-build mapping from token (or quoted literal) to route or inline code
type ReplacementTable = dict[str, str]

# Snapshot of "path:hash" entries over one or more directory trees
type WatchHashSet = frozenset[str]

# Transform hook handed to the script bundler: (source code, origin path) -> code
type SourceHook = Callable[[str, str], Awaitable[str]]

# Kind of a written artifact
type ArtifactKind = Literal["image", "style", "script", "page"]
