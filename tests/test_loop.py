"""Tests for tinybundler.dev.loop — change-gated rebuilds, restarts and notify."""

from __future__ import annotations

import asyncio
import contextlib
import sys
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio

from tinybundler.config import BundlerConfig
from tinybundler.dev.loop import DevLoopController, DevLoopState
from tinybundler.dev.supervisor import BackendSupervisor
from tinybundler.observability import BackendRestarted, EventLog, ReloadPublished

_SLEEPER = (sys.executable, "-c", "import time; time.sleep(30)")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeNotifier:
    published: list[int] = field(default_factory=list)
    started: bool = False
    stopped: bool = False
    client_count: int = 0

    @property
    def revision(self) -> int:
        return len(self.published)

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    def publish(self) -> int:
        revision = len(self.published)
        self.published.append(revision)
        return revision


@dataclass
class FakeTicker:
    ticks: int = 0
    closed: bool = False
    ticked: asyncio.Event = field(default_factory=asyncio.Event)

    async def tick(self) -> None:
        self.ticks += 1
        self.ticked.set()
        await asyncio.sleep(0)

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class CountingBuild:
    calls: int = 0
    error: Exception | None = None

    async def __call__(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error


@pytest_asyncio.fixture
async def supervisor() -> AsyncIterator[BackendSupervisor]:
    owned = BackendSupervisor()
    try:
        yield owned
    finally:
        await owned.terminate()


@pytest_asyncio.fixture
async def listening_port() -> AsyncIterator[int]:
    server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
    try:
        yield server.sockets[0].getsockname()[1]
    finally:
        server.close()
        await server.wait_closed()


async def _closed_port() -> int:
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port


def _backend(config: BundlerConfig) -> Path:
    backend = config.backend_path
    backend.mkdir(exist_ok=True)
    (backend / "main.py").write_text("print('v1')\n")
    return backend


# ---------------------------------------------------------------------------
# Frontend-only loop
# ---------------------------------------------------------------------------


class TestRebuildGating:
    """A build runs only when the frontend snapshot changes."""

    @pytest.mark.asyncio
    async def test_first_step_builds_then_waits_for_change(self, config: BundlerConfig) -> None:
        build = CountingBuild()
        controller = DevLoopController(config, build, ticker=FakeTicker())

        state = await controller.step(DevLoopState())
        assert build.calls == 1
        state = await controller.step(state)
        state = await controller.step(state)
        assert build.calls == 1
        assert state.iterations == 3

        (config.frontend_path / "img" / "new.png").write_bytes(b"x")
        state = await controller.step(state)
        assert build.calls == 2
        assert state.builds == 2

    @pytest.mark.asyncio
    async def test_build_error_does_not_stop_loop(self, config: BundlerConfig) -> None:
        build = CountingBuild(error=RuntimeError("esbuild: exploded"))
        controller = DevLoopController(config, build, ticker=FakeTicker())

        state = await controller.step(DevLoopState())

        assert build.calls == 1
        assert state.iterations == 1
        assert state.frontend

    @pytest.mark.asyncio
    async def test_publish_immediately_without_backend(self, config: BundlerConfig) -> None:
        notifier = FakeNotifier()
        log = EventLog()
        controller = DevLoopController(
            config, CountingBuild(), notifier=notifier, ticker=FakeTicker(), event_log=log,
        )

        state = await controller.step(DevLoopState())
        state = await controller.step(state)

        assert notifier.published == [0]
        assert state.notify_task is None
        assert len(log.query(kind=ReloadPublished)) == 1


# ---------------------------------------------------------------------------
# Backend supervision
# ---------------------------------------------------------------------------


class TestBackendRestarts:
    """Restart on frontend or backend changes, one live process at a time."""

    @pytest.mark.asyncio
    async def test_restart_on_backend_change(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        backend = _backend(config)
        build = CountingBuild()
        log = EventLog()
        controller = DevLoopController(
            config, build, supervisor=supervisor, ticker=FakeTicker(),
            command=_SLEEPER, event_log=log,
        )

        state = await controller.step(DevLoopState())
        first = supervisor.current
        assert first is not None and first.alive

        state = await controller.step(state)
        assert supervisor.current is first

        (backend / "main.py").write_text("print('v2')\n")
        state = await controller.step(state)

        second = supervisor.current
        assert second is not None and second.alive
        assert second.pid != first.pid
        assert not first.alive
        assert build.calls == 1
        restarts = log.query(kind=BackendRestarted)
        assert [e.previous_pid for e in reversed(restarts)] == [None, first.pid]

    @pytest.mark.asyncio
    async def test_frontend_change_rebuilds_and_restarts(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        _backend(config)
        build = CountingBuild()
        controller = DevLoopController(
            config, build, supervisor=supervisor, ticker=FakeTicker(), command=_SLEEPER,
        )

        state = await controller.step(DevLoopState())
        first = supervisor.current
        (config.frontend_path / "css" / "site.css").write_text("body { margin: 1px; }\n")
        await controller.step(state)

        assert build.calls == 2
        assert supervisor.current is not None
        assert supervisor.current.pid != first.pid  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_spawns_configured_command(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        _backend(config)
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, ticker=FakeTicker(), command=_SLEEPER,
        )

        await controller.step(DevLoopState())

        assert supervisor.current is not None
        assert supervisor.current.command == _SLEEPER

    @pytest.mark.asyncio
    async def test_no_backend_language_means_no_process(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        _backend(config)
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, ticker=FakeTicker(),
        )

        state = await controller.step(DevLoopState())

        assert supervisor.current is None
        assert state.backend == frozenset()

    @pytest.mark.asyncio
    async def test_spawn_failure_skips_notify(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        notifier = FakeNotifier()
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, notifier=notifier,
            ticker=FakeTicker(), command=("tinybundler-no-such-binary",),
        )

        state = await controller.step(DevLoopState())

        assert supervisor.current is None
        assert state.notify_task is None
        assert notifier.published == []


# ---------------------------------------------------------------------------
# Notify
# ---------------------------------------------------------------------------


class TestNotify:
    """Notify waits run in the background and are cancelled by newer changes."""

    @pytest.mark.asyncio
    async def test_publishes_when_backend_reachable(
        self, config: BundlerConfig, supervisor: BackendSupervisor, listening_port: int,
    ) -> None:
        notifier = FakeNotifier()
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, notifier=notifier,
            ticker=FakeTicker(), command=_SLEEPER, probe_host="127.0.0.1",
            probe_port=listening_port, retry_interval=0.05,
        )

        state = await controller.step(DevLoopState())
        assert state.notify_task is not None
        assert state.generation is not None

        assert await asyncio.wait_for(state.notify_task, 5) == 0
        assert notifier.published == [0]

    @pytest.mark.asyncio
    async def test_new_change_aborts_pending_notify(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        backend = _backend(config)
        notifier = FakeNotifier()
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, notifier=notifier,
            ticker=FakeTicker(), command=_SLEEPER, probe_port=await _closed_port(),
            retry_interval=0.05,
        )

        state = await controller.step(DevLoopState())
        stale_generation = state.generation
        stale_task = state.notify_task
        assert stale_generation is not None and stale_task is not None

        (backend / "main.py").write_text("print('v2')\n")
        state = await controller.step(state)

        assert stale_generation.aborted
        with pytest.raises(asyncio.CancelledError):
            await stale_task
        assert state.generation is not stale_generation
        assert state.generation is not None
        assert state.generation.number == stale_generation.number + 1
        assert notifier.published == []
        assert state.notify_task is not None
        state.notify_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await state.notify_task


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------


class TestRun:
    """run() loops until cancelled and then releases everything."""

    @pytest.mark.asyncio
    async def test_cancel_cleans_up(
        self, config: BundlerConfig, supervisor: BackendSupervisor,
    ) -> None:
        _backend(config)
        notifier = FakeNotifier()
        ticker = FakeTicker()
        controller = DevLoopController(
            config, CountingBuild(), supervisor=supervisor, notifier=notifier,
            ticker=ticker, command=_SLEEPER, probe_port=await _closed_port(),
            retry_interval=0.05,
        )

        task = asyncio.create_task(controller.run())
        await asyncio.wait_for(ticker.ticked.wait(), 10)
        backend = supervisor.current
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert notifier.started
        assert notifier.stopped
        assert ticker.closed
        assert supervisor.current is None
        assert backend is not None and not backend.alive
