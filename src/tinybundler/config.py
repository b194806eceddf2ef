"""Tinybundler configuration.

BundlerConfig is the central configuration object, frozen after creation.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


def _production_from_env() -> bool:
    return os.environ.get("TINYBUNDLER_ENV", "") == "production"


@dataclass(frozen=True, slots=True)
class BundlerConfig:
    """Configuration for a tinybundler project.

    Attributes:
        root: Project root (contains the frontend and backend directories).
              Always resolved to an absolute path on construction.
        assets_dir: Directory under ``bundle_dir`` for hashed artifacts, also
            the first segment of every artifact route.
        backend_dir: Directory containing backend sources (watched in dev).
        backend_language: Backend toolchain (``"rust"`` or ``"python"``);
            ``None`` disables backend supervision.
        backend_command: Explicit command line overriding the language default.
        bundle_dir: Output directory for the whole build.
        frontend_alias: Alias prefix used in references (``@`` in ``@/a.png``).
        frontend_dir: Directory the alias points at.
        template_dir: Entry templates, relative to ``frontend_dir``.
        temp_dir: Scratch space under ``bundle_dir``, removed after each build.
        auto_reload: Inject the reload client and notify browsers (dev only).
        production: Minify output; defaults to ``TINYBUNDLER_ENV=production``.
        css_compiler: ``"css"`` for plain import expansion, ``"tailwind"`` to
            compile stylesheets with the ``tailwindcss`` CLI.
        watch_backend: ``"poll"`` for the fixed interval, ``"watchfiles"`` to
            wake on filesystem events.
        poll_interval: Seconds between dev loop iterations.
        reload_port: Port of the reload WebSocket endpoint.

    """

    root: Path = field(default_factory=Path.cwd)
    assets_dir: str = "assets"
    backend_dir: str = "backend"
    backend_language: str | None = None
    backend_command: tuple[str, ...] | None = None
    bundle_dir: str = ".bundle"
    frontend_alias: str = "@"
    frontend_dir: str = "frontend"
    template_dir: str = "templates"
    temp_dir: str = "temp"
    auto_reload: bool = False
    production: bool = field(default_factory=_production_from_env)
    css_compiler: Literal["css", "tailwind"] = "css"
    watch_backend: Literal["poll", "watchfiles"] = "poll"
    poll_interval: float = 0.1
    reload_port: int = 7999

    def __post_init__(self) -> None:
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def frontend_path(self) -> Path:
        """Absolute path the frontend alias resolves against."""
        return self.root / self.frontend_dir

    @property
    def template_path(self) -> Path:
        """Absolute path to the entry template directory."""
        return self.frontend_path / self.template_dir

    @property
    def bundle_path(self) -> Path:
        """Absolute path to the output directory."""
        return self.root / self.bundle_dir

    @property
    def assets_path(self) -> Path:
        """Absolute path to the hashed artifact directory."""
        return self.bundle_path / self.assets_dir

    @property
    def temp_path(self) -> Path:
        """Absolute path to the per-build scratch directory."""
        return self.bundle_path / self.temp_dir

    @property
    def backend_path(self) -> Path:
        """Absolute path to the backend source directory."""
        return self.root / self.backend_dir
