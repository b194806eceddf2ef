"""Tinybundler error hierarchy.

All tinybundler-specific errors inherit from BundlerError for easy catching.
"""


class BundlerError(Exception):
    """Base error for all tinybundler operations."""


class ConfigError(BundlerError):
    """Invalid or missing configuration."""


class TemplateError(BundlerError):
    """An entry template could not be loaded or rendered."""


class CollaboratorError(BundlerError):
    """An external transform (bundler, compiler, resizer, formatter) failed.

    Attributes:
        collaborator: Short name of the failing collaborator (``"esbuild"``,
            ``"css"``, ``"image"``, ``"markup"``).

    """

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class SupervisorError(BundlerError):
    """The backend process could not be spawned or stopped."""
