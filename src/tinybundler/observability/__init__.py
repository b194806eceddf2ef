"""Observability — build and dev-loop events.

Quick Start:
    >>> from tinybundler.observability import EventLog, ArtifactWritten
    >>> log = EventLog()
    >>> # The build driver and dev loop append events as they work
    >>> log.query(kind=ArtifactWritten)

"""

from tinybundler.observability.events import (
    ArtifactWritten,
    BackendRestarted,
    BundlerEvent,
    ReloadPublished,
    TemplateRendered,
    TemplateSkipped,
    now_ns,
)
from tinybundler.observability.log import EventLog

__all__ = [
    "ArtifactWritten",
    "BackendRestarted",
    "BundlerEvent",
    "EventLog",
    "ReloadPublished",
    "TemplateRendered",
    "TemplateSkipped",
    "now_ns",
]
