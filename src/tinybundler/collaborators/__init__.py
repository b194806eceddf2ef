"""Collaborators — external transforms behind small async interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tinybundler.collaborators.base import (
    Collaborators,
    ImageResizer,
    MarkupFormatter,
    ScriptBundle,
    ScriptBundler,
    StylesheetCompiler,
)

if TYPE_CHECKING:
    from tinybundler.config import BundlerConfig

__all__ = [
    "Collaborators",
    "ImageResizer",
    "MarkupFormatter",
    "ScriptBundle",
    "ScriptBundler",
    "StylesheetCompiler",
    "default_collaborators",
]


def default_collaborators(config: BundlerConfig) -> Collaborators:
    """esbuild, rcssmin (or Tailwind), Pillow and BeautifulSoup, configured for *config*."""
    from tinybundler.collaborators.images import PillowResizer
    from tinybundler.collaborators.markup import SoupFormatter
    from tinybundler.collaborators.scripts import EsbuildBundler
    from tinybundler.collaborators.styles import CssCompiler, TailwindCompiler

    styles: StylesheetCompiler
    if config.css_compiler == "tailwind":
        styles = TailwindCompiler(config.temp_path, minify=config.production)
    else:
        styles = CssCompiler(config.frontend_alias, minify=config.production)

    return Collaborators(
        scripts=EsbuildBundler(config),
        styles=styles,
        images=PillowResizer(),
        markup=SoupFormatter(),
    )
