"""Tests for tinybundler.observability — event model and log."""

import threading

import pytest

from tinybundler.observability import (
    ArtifactWritten,
    BackendRestarted,
    EventLog,
    TemplateRendered,
    now_ns,
)


def _artifact(path: str, kind: str = "image", size: int = 10) -> ArtifactWritten:
    return ArtifactWritten(
        kind=kind,  # type: ignore[arg-type]
        source=f"@/{path}",
        path=f"/p/.bundle/{path}",
        size_bytes=size,
        timestamp_ns=now_ns(),
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    """Events are frozen and timestamped."""

    def test_frozen(self) -> None:
        event = _artifact("a.png")
        with pytest.raises(AttributeError):
            event.size_bytes = 0  # type: ignore[misc]

    def test_monotonic_timestamps(self) -> None:
        assert now_ns() <= now_ns()


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Bounded, queryable event store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(_artifact("a.png"))
        assert len(log) == 1

    def test_capacity_enforced(self) -> None:
        log = EventLog(capacity=3)
        for i in range(10):
            log.append(_artifact(f"{i}.png"))
        assert len(log) == 3
        assert [e.path for e in log.artifacts()][-1].endswith("9.png")

    def test_query_by_kind_newest_first(self) -> None:
        log = EventLog()
        log.append(_artifact("a.png"))
        log.append(TemplateRendered(name="index", references=1, render_ms=0.1, timestamp_ns=now_ns()))
        log.append(_artifact("b.png"))

        results = log.query(kind=ArtifactWritten)
        assert [e.path for e in results] == ["/p/.bundle/b.png", "/p/.bundle/a.png"]

    def test_query_match_and_limit(self) -> None:
        log = EventLog()
        for name in ("x.css", "y.png", "z.css"):
            log.append(_artifact(name))
        log.append(TemplateRendered(name="blog/css-tricks", references=0, render_ms=0.0, timestamp_ns=now_ns()))

        assert len(log.query(match="css")) == 3
        assert len(log.query(match="css", limit=1)) == 1

    def test_query_since(self) -> None:
        log = EventLog()
        cutoff = now_ns()
        log.append(TemplateRendered(name="old", references=0, render_ms=0.0, timestamp_ns=cutoff - 10))
        log.append(BackendRestarted(command="cargo run", pid=1, previous_pid=None, timestamp_ns=cutoff))

        (event,) = log.query(since_ns=cutoff)
        assert isinstance(event, BackendRestarted)

    def test_clear(self) -> None:
        log = EventLog()
        log.append(_artifact("a.png"))
        assert log.clear() == 1
        assert len(log) == 0

    def test_summary(self) -> None:
        log = EventLog(capacity=50)
        log.append(_artifact("a.png", size=100))
        log.append(_artifact("b.css", kind="style", size=7))
        log.append(_artifact("c.png", size=1))

        summary = log.summary()
        assert summary["total"] == 3
        assert summary["capacity"] == 50
        assert summary["by_type"] == {"ArtifactWritten": 3}
        assert summary["bytes_by_kind"] == {"image": 101, "style": 7}

    def test_concurrent_appends(self) -> None:
        log = EventLog()

        def _writer() -> None:
            for _ in range(500):
                log.append(_artifact("t.png"))

        threads = [threading.Thread(target=_writer) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(log) == 2000
