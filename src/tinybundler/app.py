"""tinybundler application — one-shot bundle and the dev loop.

``bundle`` runs a single build.  ``dev`` builds on every frontend change,
restarts the backend after each rebuild or backend edit, and (with
``auto_reload``) tells connected browsers when the new backend is reachable.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from tinybundler.banner import print_banner, print_bundle_summary, print_rule
from tinybundler.build.driver import TemplateBuildDriver
from tinybundler.collaborators import default_collaborators
from tinybundler.config_loader import load_config
from tinybundler.observability import EventLog

if TYPE_CHECKING:
    from tinybundler.build.driver import BuildResult
    from tinybundler.build.templates import TemplateRegistry
    from tinybundler.collaborators import Collaborators
    from tinybundler.config import BundlerConfig


def _load(root: str | Path, overrides: dict[str, object]) -> BundlerConfig:
    values = {key: value for key, value in overrides.items() if value is not None}
    return load_config(Path(root), **values)


async def _build_with_summary(driver: TemplateBuildDriver) -> BuildResult:
    print_rule("bundle start")
    result = await driver.build()
    print_bundle_summary(result)
    return result


def bundle(
    root: str | Path = ".",
    *,
    collaborators: Collaborators | None = None,
    registry: TemplateRegistry | None = None,
    **overrides: object,
) -> BuildResult:
    """Build the project at *root* once.

    Args:
        root: Project root (holds ``frontend/``, ``backend/``, config file).
        collaborators: Transforms to use; defaults to esbuild, rcssmin,
            Pillow and BeautifulSoup.
        registry: Fixed template registry instead of discovering
            ``frontend/templates/*.py``.
        **overrides: BundlerConfig field overrides.

    Returns:
        The BuildResult of the build.

    Raises:
        BundlerError: On configuration, template-registry or collaborator
            failures.

    """
    config = _load(root, overrides)
    print_banner(config, "bundle")
    driver = TemplateBuildDriver(
        config,
        collaborators or default_collaborators(config),
        registry,
        event_log=EventLog(),
    )
    return asyncio.run(_build_with_summary(driver))


def dev(
    root: str | Path = ".",
    *,
    collaborators: Collaborators | None = None,
    registry: TemplateRegistry | None = None,
    **overrides: object,
) -> None:
    """Run the dev loop for the project at *root* until interrupted.

    Args:
        root: Project root.
        collaborators: Transforms to use; see :func:`bundle`.
        registry: Fixed template registry; see :func:`bundle`.
        **overrides: BundlerConfig field overrides.

    """
    from tinybundler.dev.loop import DevLoopController
    from tinybundler.dev.notifier import ReloadNotifier
    from tinybundler.dev.watcher import make_ticker

    config = _load(root, overrides)
    print_banner(config, "dev")

    event_log = EventLog()
    driver = TemplateBuildDriver(
        config,
        collaborators or default_collaborators(config),
        registry,
        auto_reload=config.auto_reload,
        event_log=event_log,
    )
    notifier = ReloadNotifier(port=config.reload_port) if config.auto_reload else None
    controller = DevLoopController(
        config,
        lambda: _build_with_summary(driver),
        notifier=notifier,
        ticker=make_ticker(config),
        event_log=event_log,
    )
    asyncio.run(controller.run())
