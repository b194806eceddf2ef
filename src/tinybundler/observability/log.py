"""Event log — bounded, thread-safe record of what builds and the dev loop did.

Collaborators run on worker threads (``asyncio.to_thread``) while the driver
appends from the event loop, so every access goes through one lock.
"""

import threading
from collections import Counter, deque

from tinybundler.observability.events import ArtifactWritten, BundlerEvent


class EventLog:
    """Ring buffer of :data:`BundlerEvent` values; oldest entries fall off.

    Args:
        capacity: Maximum number of events kept.

    """

    __slots__ = ("_capacity", "_events", "_lock")

    def __init__(self, capacity: int = 10_000) -> None:
        self._capacity = capacity
        self._events: deque[BundlerEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, event: BundlerEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        kind: type | None = None,
        since_ns: int = 0,
        match: str | None = None,
        limit: int | None = None,
    ) -> list[BundlerEvent]:
        """Matching events, newest first.

        Args:
            kind: Only events of this class.
            since_ns: Only events stamped at or after this monotonic time.
            match: Substring of the event's ``path``, ``source`` or ``name``.
            limit: Stop after this many results.

        """
        with self._lock:
            snapshot = list(self._events)

        results: list[BundlerEvent] = []
        for event in reversed(snapshot):
            if limit is not None and len(results) >= limit:
                break
            if kind is not None and not isinstance(event, kind):
                continue
            if event.timestamp_ns < since_ns:
                continue
            if match is not None and not any(
                match in str(getattr(event, attr, "")) for attr in ("path", "source", "name")
            ):
                continue
            results.append(event)
        return results

    def artifacts(self) -> list[ArtifactWritten]:
        """Every recorded artifact write, oldest first."""
        with self._lock:
            return [e for e in self._events if isinstance(e, ArtifactWritten)]

    def clear(self) -> int:
        """Drop all events; returns how many there were."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def summary(self) -> dict[str, object]:
        """Event counts per type plus bytes written per artifact kind."""
        with self._lock:
            events = list(self._events)
        written: Counter[str] = Counter()
        for event in events:
            if isinstance(event, ArtifactWritten):
                written[event.kind] += event.size_bytes
        return {
            "total": len(events),
            "capacity": self._capacity,
            "by_type": dict(Counter(type(e).__name__ for e in events)),
            "bytes_by_kind": dict(written),
        }
