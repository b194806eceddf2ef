"""Resource processing — turn resolved references into artifacts and routes.

Every distinct token is processed at most once per build: the first action of
each entry point is a membership check against the build's replacement table.
Stylesheets and scripts may contain further references, which are processed
recursively before the containing artifact is finalized.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from tinybundler._errors import CollaboratorError
from tinybundler.observability.events import ArtifactWritten, now_ns
from tinybundler.resources.addressing import address, content_hash
from tinybundler.resources.scanner import rewrite, scan

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tinybundler._types import ArtifactKind, ReplacementTable
    from tinybundler.collaborators import Collaborators
    from tinybundler.config import BundlerConfig
    from tinybundler.observability.log import EventLog
    from tinybundler.resources.alias import AliasResolver, ResolvedResource
    from tinybundler.resources.scanner import ReferenceMatch

SCRIPT_EXTENSIONS: frozenset[str] = frozenset({".js", ".ts"})
IMAGE_EXTENSIONS: frozenset[str] = frozenset({".png", ".jpg", ".jpeg"})
STYLE_EXTENSIONS: frozenset[str] = frozenset({".css"})


@dataclass(frozen=True, slots=True)
class BuiltArtifact:
    """A file written to the output tree during a build.

    Attributes:
        route: Public URL path.
        output_path: Absolute filesystem path.
        size_bytes: Size of the written file.
        kind: What produced it.

    """

    route: str
    output_path: Path
    size_bytes: int
    kind: ArtifactKind


@dataclass(slots=True)
class BuildContext:
    """Mutable state scoped to one build invocation.

    Attributes:
        table: Token (or quoted literal, for inline scripts) -> substitution.
        deferred_scripts: Script path -> tokens naming it, bundled together
            once all templates have been scanned.
        in_flight: Tokens currently being processed, so a reference chain that
            loops back on itself terminates.
        artifacts: Everything written so far.

    """

    table: ReplacementTable = field(default_factory=dict)
    deferred_scripts: dict[Path, list[str]] = field(default_factory=dict)
    in_flight: set[str] = field(default_factory=set)
    artifacts: list[BuiltArtifact] = field(default_factory=list)


class ResourceProcessor:
    """Dispatches resolved references to the matching collaborator.

    Args:
        config: Project configuration.
        resolver: Alias resolver for references discovered in nested sources.
        collaborators: Script, stylesheet and image transforms.
        context: The current build's table and batch state.
        event_log: Optional sink for ``ArtifactWritten`` events.

    """

    def __init__(
        self,
        config: BundlerConfig,
        resolver: AliasResolver,
        collaborators: Collaborators,
        context: BuildContext,
        event_log: EventLog | None = None,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._collaborators = collaborators
        self._context = context
        self._event_log = event_log

    @property
    def context(self) -> BuildContext:
        return self._context

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process(self, token: str, resource: ResolvedResource) -> None:
        """Process one reference and record its route in the table.

        Scripts are only handled here when flagged ``?worker``; unknown
        extensions are ignored.
        """
        ctx = self._context
        if token in ctx.table or token in ctx.in_flight:
            return

        ext = resource.extension
        ctx.in_flight.add(token)
        try:
            if ext in SCRIPT_EXTENSIONS:
                if resource.has_flag("worker"):
                    await self._bundle_entries({resource.path: [token]})
            elif ext in IMAGE_EXTENSIONS:
                data = await self._process_image(resource)
                self._emit(token, resource, data, "image")
            elif ext in STYLE_EXTENSIONS:
                css = await self._process_stylesheet(resource)
                self._emit(token, resource, css.encode("utf-8"), "style")
        finally:
            ctx.in_flight.discard(token)

    async def process_inline_script(self, literal: str, resource: ResolvedResource) -> None:
        """Bundle one script on its own and store its code under the quoted *literal*."""
        table = self._context.table
        if literal in table:
            return
        bundle = await self._collaborators.scripts.bundle(
            [resource.path],
            hook=self.source_hook,
            out_dir=self._config.temp_path,
            inline=True,
        )
        table[literal] = bundle.code or ""

    def defer_script(self, token: str, resource: ResolvedResource) -> None:
        """Queue a plain script reference for the end-of-build batch."""
        if token in self._context.table:
            return
        tokens = self._context.deferred_scripts.setdefault(resource.path, [])
        if token not in tokens:
            tokens.append(token)

    async def flush_scripts(self) -> None:
        """Bundle every deferred script as one multi-entry job."""
        batch = self._context.deferred_scripts
        if not batch:
            return
        pending = dict(batch)
        batch.clear()
        await self._bundle_entries(pending)

    async def process_matches(self, matches: Iterable[ReferenceMatch]) -> None:
        """Process every resolvable reference in *matches* not seen yet."""
        for match in matches:
            if match.token in self._context.table:
                continue
            resource = self._resolver.resolve(match.token)
            if resource is not None:
                await self.process(match.token, resource)

    async def source_hook(self, code: str, origin: str) -> str:
        """Rewrite references in a frontend script before it is bundled."""
        if not Path(origin).is_relative_to(self._config.frontend_path):
            return code
        await self.process_matches(scan(code, self._resolver.alias))
        return rewrite(code, self._context.table)

    # ------------------------------------------------------------------
    # Kinds
    # ------------------------------------------------------------------

    async def _process_image(self, resource: ResolvedResource) -> bytes:
        data = resource.path.read_bytes()
        width = _parse_width(resource.param("w"))
        if width is None:
            return data
        return await self._collaborators.images.resize(data, width)

    async def _process_stylesheet(self, resource: ResolvedResource) -> str:
        css = await self._collaborators.styles.compile(resource.path)
        await self.process_matches(scan(css, self._resolver.alias))
        return rewrite(css, self._context.table)

    async def _bundle_entries(self, batch: dict[Path, list[str]]) -> None:
        bundle = await self._collaborators.scripts.bundle(
            list(batch),
            hook=self.source_hook,
            out_dir=self._config.assets_path,
        )
        table = self._context.table
        for path, tokens in batch.items():
            output = bundle.outputs.get(path)
            if output is None:
                msg = f"no output chunk reported for entry {path}"
                raise CollaboratorError("scripts", msg)
            route = "/" + output.relative_to(self._config.bundle_path).as_posix()
            for token in tokens:
                table.setdefault(token, route)
            size = output.stat().st_size if output.is_file() else 0
            self._record(BuiltArtifact(route, output, size, "script"), tokens[0])

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _emit(
        self,
        token: str,
        resource: ResolvedResource,
        data: bytes,
        kind: ArtifactKind,
    ) -> None:
        """Hash *data*, write it under its content address, record the route."""
        addr = address(
            resource.path.name,
            content_hash(data),
            self._config.bundle_path,
            self._config.assets_dir,
        )
        addr.output_path.parent.mkdir(parents=True, exist_ok=True)
        addr.output_path.write_bytes(data)
        self._context.table[token] = addr.route
        self._record(BuiltArtifact(addr.route, addr.output_path, len(data), kind), token)

    def _record(self, artifact: BuiltArtifact, source: str) -> None:
        self._context.artifacts.append(artifact)
        if self._event_log is not None:
            self._event_log.append(ArtifactWritten(
                kind=artifact.kind,
                source=source,
                path=str(artifact.output_path),
                size_bytes=artifact.size_bytes,
                timestamp_ns=now_ns(),
            ))


def _parse_width(raw: str | None) -> int | None:
    """Parse the ``w`` query value; anything but a positive number is ignored."""
    if raw is None:
        return None
    try:
        width = float(raw)
    except ValueError:
        return None
    if not math.isfinite(width) or width < 1:
        return None
    return int(width)
