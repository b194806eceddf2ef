"""Console output — startup banner, phase rules, warnings and the file listing.

Everything goes to stderr.  Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tinybundler.build.driver import BuildResult
    from tinybundler.config import BundlerConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_BLUE = "\033[38;5;69m" if _COLOR else ""
_ORANGE = "\033[38;5;214m" if _COLOR else ""
_LIME = "\033[38;5;118m" if _COLOR else ""

# Output listing colors by file extension
_EXT_COLORS: dict[str, str] = {
    ".map": _DIM,
    ".js": _ORANGE,
    ".css": _LIME,
    ".html": _YELLOW,
}

_MODE_STYLES: dict[str, str] = {
    "dev": _GREEN,
    "bundle": _YELLOW,
}


def _emit(line: str) -> None:
    print(line, file=sys.stderr)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(config: BundlerConfig, mode: str) -> None:
    """Print the startup banner for *mode* (``"dev"`` or ``"bundle"``)."""
    from tinybundler import __version__

    color = _MODE_STYLES.get(mode, _DIM)
    lines = [
        "",
        f"  {_BOLD}tinybundler{_RESET} {_DIM}v{__version__}{_RESET}  {color}[{mode}]{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} templates: {_DIM}{config.template_path}{_RESET}",
        f"  {_DIM}├─{_RESET} alias: {config.frontend_alias}/ -> {_DIM}{config.frontend_path}{_RESET}",
    ]
    if mode == "dev":
        backend = config.backend_language or "none"
        lines.append(f"  {_DIM}├─{_RESET} backend: {backend}")
        if config.auto_reload:
            lines.append(
                f"  {_DIM}├─{_RESET} {_GREEN}auto-reload{_RESET} "
                f"on {_DIM}ws://0.0.0.0:{config.reload_port}/ws{_RESET}"
            )
    lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.bundle_path}{_RESET}")
    lines.append("")
    _emit("\n".join(lines))


def print_rule(label: str) -> None:
    """Print a ``===== label =====`` phase marker."""
    _emit(f"{_BLUE}===== {label} ====={_RESET}")


def print_warning(message: str) -> None:
    _emit(f"{_YELLOW}! {message}{_RESET}")


def print_error(message: str) -> None:
    _emit(f"{_RED}✗ {message}{_RESET}")


def format_duration(duration_ms: float) -> str:
    """``850 ms`` below one second, ``1.2 s`` above."""
    if duration_ms > 1000:
        return f"{duration_ms / 1000:.1f} s"
    return f"{duration_ms:.0f} ms"


def print_bundle_summary(result: BuildResult) -> None:
    """List every file in the output tree with its size, then the end rule."""
    from tinybundler.build.artifacts import format_file_size, list_outputs

    entries = list_outputs(result.output_dir)
    width = max((len(e.name) for e in entries), default=0)
    for entry in entries:
        ext = os.path.splitext(entry.name)[1].lower()
        color = _EXT_COLORS.get(ext, "")
        size = f"({format_file_size(entry.size_bytes)})"
        _emit(f"{color}> {entry.name.ljust(width)} {size}{_RESET}")
    if result.skipped:
        skipped = ", ".join(result.skipped)
        print_warning(f"skipped {len(result.skipped)} template(s): {skipped}")
    print_rule(f"bundle end: ({format_duration(result.duration_ms)})")
