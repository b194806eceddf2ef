"""Dev loop controller — poll, rebuild, restart the backend, notify browsers.

Each iteration:

    1. Snapshot the frontend tree and compare with the previous snapshot
    2. On change, run a full build (failures are reported, the loop goes on)
    3. With a backend configured, snapshot output + backend trees and compare
    4. On any change: abort the pending notify wait, terminate the backend
       (confirmed dead), spawn a new one, start a new notify wait
    5. Keep both snapshots as the baseline for the next iteration

The split between the two snapshots means a frontend edit always rebuilds,
while the backend restarts for frontend edits, backend edits, and output
changes alike.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from tinybundler._errors import SupervisorError
from tinybundler.banner import print_error, print_rule
from tinybundler.dev.notifier import PROBE_HOST, NotifyGeneration, wait_and_publish
from tinybundler.dev.snapshot import HashingSnapshotter
from tinybundler.dev.supervisor import BackendSupervisor, backend_command
from tinybundler.dev.watcher import IntervalTicker
from tinybundler.observability.events import BackendRestarted, ReloadPublished, now_ns

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tinybundler._types import WatchHashSet
    from tinybundler.config import BundlerConfig
    from tinybundler.dev.notifier import ReloadNotifier
    from tinybundler.dev.snapshot import DirectorySnapshotter
    from tinybundler.dev.watcher import Ticker
    from tinybundler.observability.log import EventLog


@dataclass(frozen=True, slots=True)
class DevLoopState:
    """Everything one iteration hands to the next.

    Attributes:
        frontend: Snapshot of the frontend tree.
        backend: Snapshot of the output and backend trees.
        generation: Abort token of the pending notify wait, if any.
        notify_task: Task running that wait, if any.
        iterations: Completed iterations.
        builds: Builds started.

    """

    frontend: WatchHashSet = frozenset()
    backend: WatchHashSet = frozenset()
    generation: NotifyGeneration | None = None
    notify_task: asyncio.Task[int | None] | None = None
    iterations: int = 0
    builds: int = 0


class DevLoopController:
    """Owns the dev loop state and the backend process.

    Args:
        config: Project configuration.
        build: Coroutine function running one full build.
        snapshotter: Directory snapshot strategy.
        supervisor: Backend process owner.
        notifier: Reload channel; ``None`` disables notifications.
        ticker: Pacing between iterations.
        command: Backend command line; defaults to :func:`backend_command`.
        probe_host: Host the backend is probed on.
        probe_port: Backend port to probe; defaults to ``$PORT`` / 8080.
        retry_interval: Seconds between probes while waiting for the backend.
        event_log: Optional sink for dev loop events.

    """

    def __init__(
        self,
        config: BundlerConfig,
        build: Callable[[], Awaitable[object]],
        *,
        snapshotter: DirectorySnapshotter | None = None,
        supervisor: BackendSupervisor | None = None,
        notifier: ReloadNotifier | None = None,
        ticker: Ticker | None = None,
        command: tuple[str, ...] | None = None,
        probe_host: str = PROBE_HOST,
        probe_port: int | None = None,
        retry_interval: float = 1.0,
        event_log: EventLog | None = None,
    ) -> None:
        self._config = config
        self._build = build
        self._snapshotter = snapshotter or HashingSnapshotter()
        self._supervisor = supervisor or BackendSupervisor()
        self._notifier = notifier
        self._ticker = ticker or IntervalTicker(config.poll_interval)
        self._command = command if command is not None else backend_command(config)
        self._probe_host = probe_host
        self._probe_port = probe_port
        self._retry_interval = retry_interval
        self._event_log = event_log
        self._generations = itertools.count(1)

    @property
    def supervisor(self) -> BackendSupervisor:
        return self._supervisor

    async def step(self, state: DevLoopState) -> DevLoopState:
        """Run one iteration and return the state for the next."""
        config = self._config
        snap = self._snapshotter

        frontend = await asyncio.to_thread(snap.compute, config.frontend_path)
        frontend_changed = snap.changed(state.frontend, frontend)
        builds = state.builds

        if frontend_changed:
            builds += 1
            try:
                await self._build()
            except Exception as exc:  # noqa: BLE001 - a broken build must not stop the loop
                print_error(f"build failed: {type(exc).__name__}: {exc}")

        backend = state.backend
        generation = state.generation
        task = state.notify_task

        command = self._command
        if command is not None:
            backend = await asyncio.to_thread(
                snap.compute, config.bundle_path, config.backend_path,
            )
            backend_changed = snap.changed(state.backend, backend)
            if frontend_changed or backend_changed:
                generation, task = await self._restart(state, command)
        elif frontend_changed and self._notifier is not None:
            # Nothing to wait for without a backend
            self._cancel_notify(state)
            generation, task = None, None
            self._publish_now(self._notifier)

        return replace(
            state,
            frontend=frontend,
            backend=backend,
            generation=generation,
            notify_task=task,
            iterations=state.iterations + 1,
            builds=builds,
        )

    async def run(self, state: DevLoopState | None = None) -> None:
        """Loop until cancelled, then stop the backend and the notifier."""
        state = state or DevLoopState()
        if self._notifier is not None:
            await self._notifier.start()
        try:
            while True:
                state = await self.step(state)
                await self._ticker.tick()
        finally:
            self._cancel_notify(state)
            if self._supervisor.current is not None:
                await self._supervisor.terminate()
                print_rule("server end")
            if self._notifier is not None:
                await self._notifier.stop()
            await self._ticker.aclose()

    # ------------------------------------------------------------------
    # Backend + notify
    # ------------------------------------------------------------------

    async def _restart(
        self,
        state: DevLoopState,
        command: tuple[str, ...],
    ) -> tuple[NotifyGeneration | None, asyncio.Task[int | None] | None]:
        self._cancel_notify(state)

        previous = self._supervisor.current
        previous_pid = previous.pid if previous is not None else None
        if previous is not None:
            await self._supervisor.terminate()
            print_rule("server end")

        print_rule("server start")
        try:
            handle = await self._supervisor.spawn(command, cwd=self._config.root)
        except SupervisorError as exc:
            print_error(str(exc))
            return None, None

        if self._event_log is not None:
            self._event_log.append(BackendRestarted(
                command=" ".join(handle.command),
                pid=handle.pid,
                previous_pid=previous_pid,
                timestamp_ns=now_ns(),
            ))

        if self._notifier is None:
            return None, None

        generation = NotifyGeneration(number=next(self._generations))
        task = asyncio.create_task(
            wait_and_publish(
                self._notifier,
                generation,
                host=self._probe_host,
                port=self._probe_port,
                retry_interval=self._retry_interval,
                event_log=self._event_log,
            ),
            name=f"tinybundler-notify-{generation.number}",
        )
        return generation, task

    def _cancel_notify(self, state: DevLoopState) -> None:
        if state.generation is not None:
            state.generation.abort()
        if state.notify_task is not None and not state.notify_task.done():
            state.notify_task.cancel()

    def _publish_now(self, notifier: ReloadNotifier) -> None:
        revision = notifier.publish()
        if self._event_log is not None:
            self._event_log.append(ReloadPublished(
                revision=revision,
                clients=notifier.client_count,
                waited_ms=0.0,
                timestamp_ns=now_ns(),
            ))
