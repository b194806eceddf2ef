"""Event model for build and dev-loop observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type
"""

import time
from dataclasses import dataclass

from tinybundler._types import ArtifactKind


# ---------------------------------------------------------------------------
# Build events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArtifactWritten:
    """A hashed artifact or rendered page was written to the output tree.

    Attributes:
        kind: What was written.
        source: Token or template name that produced it.
        path: Absolute output path.
        size_bytes: Bytes written.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: ArtifactKind
    source: str
    path: str
    size_bytes: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class TemplateRendered:
    """An entry template produced markup.

    Attributes:
        name: Template name (``index``, ``blog/post``).
        references: Number of quoted references found in the markup.
        render_ms: Time spent in the template function.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    name: str
    references: int
    render_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class TemplateSkipped:
    """An entry template failed to load or render and was left out."""

    name: str
    reason: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Dev loop events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BackendRestarted:
    """The supervised backend was (re)spawned.

    Attributes:
        command: Command line of the new process.
        pid: Process id of the new process.
        previous_pid: Process id of the process terminated first, if any.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    command: str
    pid: int
    previous_pid: int | None
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReloadPublished:
    """Browsers were told to reload.

    Attributes:
        revision: Revision number that was broadcast.
        clients: Number of connected clients at publish time.
        waited_ms: Time spent waiting for the backend to accept connections.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    revision: int
    clients: int
    waited_ms: float
    timestamp_ns: int


type BundlerEvent = (
    ArtifactWritten
    | TemplateRendered
    | TemplateSkipped
    | BackendRestarted
    | ReloadPublished
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
