"""tinybundler — a tiny template-driven asset bundler with a dev loop.

Templates under ``frontend/templates`` render HTML that references frontend
files through an alias (``"@/img/a.png?w=100"``).  A build resolves every
reference, writes a content-hashed artifact per resource, bundles scripts with
esbuild, and substitutes the public routes back into the pages.  The dev loop
polls for changes, rebuilds, restarts the backend, and reloads browsers.

Basic usage::

    import tinybundler

    tinybundler.bundle("my-project")

Dev mode::

    tinybundler.dev("my-project", auto_reload=True)

"""

__version__ = "0.1.0.dev0"

__all__ = [
    "BundlerConfig",
    "__version__",
    "bundle",
    "dev",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import tinybundler`` fast; collaborators and the WebSocket server
    are only imported when a build or the dev loop actually runs.
    """
    if name == "BundlerConfig":
        from tinybundler.config import BundlerConfig

        return BundlerConfig

    if name == "bundle":
        from tinybundler.app import bundle

        return bundle

    if name == "dev":
        from tinybundler.app import dev

        return dev

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
