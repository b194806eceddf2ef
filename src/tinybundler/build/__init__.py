"""Build layer — templates in, content-addressed output tree out."""

from tinybundler.build.driver import BuildResult, TemplateBuildDriver
from tinybundler.build.templates import TemplateEntry, TemplateRegistry, discover_templates

__all__ = [
    "BuildResult",
    "TemplateBuildDriver",
    "TemplateEntry",
    "TemplateRegistry",
    "discover_templates",
]
