"""Template build driver — render entry templates and bundle what they reference.

One build runs in strict phases:

    1. Clean the bundle directory
    2. Render every template and scan its markup
    3. Process each reference (inline scripts and non-script resources right
       away, plain scripts deferred)
    4. Bundle the deferred scripts as one multi-entry job
    5. Substitute routes into every page (only after 2-4 have drained)
    6. Pretty-print and write ``<bundle>/<name>.html``

Template failures skip that template.  Collaborator failures abort the build.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tinybundler.banner import print_warning
from tinybundler.build.artifacts import clean_output, page_path, remove_scratch, write_page
from tinybundler.build.templates import TemplateRegistry, discover_templates
from tinybundler.dev.hmr import inject_reload_client, reload_client
from tinybundler.observability.events import (
    ArtifactWritten,
    TemplateRendered,
    TemplateSkipped,
    now_ns,
)
from tinybundler.resources.alias import AliasResolver
from tinybundler.resources.processor import (
    SCRIPT_EXTENSIONS,
    BuildContext,
    BuiltArtifact,
    ResourceProcessor,
)
from tinybundler.resources.scanner import rewrite, scan

if TYPE_CHECKING:
    from tinybundler.build.templates import TemplateEntry
    from tinybundler.collaborators import Collaborators
    from tinybundler.config import BundlerConfig
    from tinybundler.observability.log import EventLog
    from tinybundler.resources.scanner import ReferenceMatch


@dataclass(frozen=True, slots=True)
class _RenderedPage:
    name: str
    markup: str


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Aggregate result of one build.

    Attributes:
        artifacts: Hashed images, stylesheets and script entries written.
        pages: Rendered HTML pages written.
        skipped: Names of templates that failed to load or render.
        replacements: Final token -> substitution table.
        duration_ms: Wall-clock time of the build.
        output_dir: Absolute path to the bundle directory.

    """

    artifacts: tuple[BuiltArtifact, ...]
    pages: tuple[BuiltArtifact, ...]
    skipped: tuple[str, ...]
    replacements: dict[str, str]
    duration_ms: float
    output_dir: Path


class TemplateBuildDriver:
    """Runs full builds for a project.

    Args:
        config: Project configuration.
        collaborators: Transforms used for scripts, styles, images and markup.
        registry: Fixed template registry; when ``None`` templates are
            discovered from ``config.template_path`` at the start of every build.
        auto_reload: Inject the reload client into every page.
        event_log: Optional sink for build events.

    """

    def __init__(
        self,
        config: BundlerConfig,
        collaborators: Collaborators,
        registry: TemplateRegistry | None = None,
        *,
        auto_reload: bool = False,
        event_log: EventLog | None = None,
    ) -> None:
        self._config = config
        self._collaborators = collaborators
        self._registry = registry
        self._auto_reload = auto_reload
        self._event_log = event_log
        self._resolver = AliasResolver(config.frontend_alias, config.frontend_path)

    async def build(self) -> BuildResult:
        """Run one full build and return what it wrote."""
        start = time.perf_counter()
        config = self._config

        clean_output(config.bundle_path)

        registry = self._registry
        if registry is None:
            registry = discover_templates(config.template_path)

        skipped: list[str] = []
        for failure in registry.failures:
            self._skip(failure.name, failure.reason)
            skipped.append(failure.name)

        context = BuildContext()
        processor = ResourceProcessor(
            config, self._resolver, self._collaborators, context, self._event_log,
        )

        try:
            rendered: list[_RenderedPage] = []
            for entry in registry:
                markup = self._render(entry)
                if markup is None:
                    skipped.append(entry.name)
                    continue
                for match in scan(markup, config.frontend_alias):
                    await self._dispatch(processor, match)
                rendered.append(_RenderedPage(entry.name, markup))

            await processor.flush_scripts()

            pages = [await self._write(page, context) for page in rendered]
        finally:
            remove_scratch(config.temp_path)

        return BuildResult(
            artifacts=tuple(context.artifacts),
            pages=tuple(pages),
            skipped=tuple(skipped),
            replacements=dict(context.table),
            duration_ms=(time.perf_counter() - start) * 1000,
            output_dir=config.bundle_path,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _render(self, entry: TemplateEntry) -> str | None:
        """Call a template function; ``None`` means the template is skipped."""
        t0 = time.perf_counter()
        try:
            markup = entry.render()
        except Exception as exc:  # noqa: BLE001 - a broken template must not stop the others
            self._skip(entry.name, f"{type(exc).__name__}: {exc}")
            return None

        if markup is None:
            markup = ""
        elif not isinstance(markup, str):
            self._skip(entry.name, f"returned {type(markup).__name__}, expected str")
            return None

        if self._event_log is not None:
            self._event_log.append(TemplateRendered(
                name=entry.name,
                references=markup.count(self._config.frontend_alias + "/"),
                render_ms=(time.perf_counter() - t0) * 1000,
                timestamp_ns=now_ns(),
            ))
        return markup

    async def _dispatch(self, processor: ResourceProcessor, match: ReferenceMatch) -> None:
        resource = self._resolver.resolve(match.token)
        if resource is None:
            return
        if resource.extension in SCRIPT_EXTENSIONS:
            if resource.has_flag("inline"):
                await processor.process_inline_script(match.literal, resource)
            else:
                processor.defer_script(match.token, resource)
        else:
            await processor.process(match.token, resource)

    async def _write(self, page: _RenderedPage, context: BuildContext) -> BuiltArtifact:
        output = rewrite(page.markup, context.table)
        if self._auto_reload:
            output = inject_reload_client(output, reload_client(self._config.reload_port))
        output = await self._collaborators.markup.format(output)

        filepath = page_path(self._config.bundle_path, page.name)
        size = write_page(filepath, output)
        route = "/" + filepath.relative_to(self._config.bundle_path).as_posix()
        if self._event_log is not None:
            self._event_log.append(ArtifactWritten(
                kind="page",
                source=page.name,
                path=str(filepath),
                size_bytes=size,
                timestamp_ns=now_ns(),
            ))
        return BuiltArtifact(route, filepath, size, "page")

    def _skip(self, name: str, reason: str) -> None:
        print_warning(f"can't process template {name!r}: {reason}")
        if self._event_log is not None:
            self._event_log.append(TemplateSkipped(name=name, reason=reason, timestamp_ns=now_ns()))
