"""Loop pacing — what the dev loop waits on between iterations.

The controller never looks at filesystem events directly; it only calls
``await ticker.tick()`` and then compares snapshots.  ``IntervalTicker`` gives
the fixed polling cadence; ``WatchfilesTicker`` wakes early when watchfiles
reports activity, with the interval as an upper bound.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tinybundler.config import BundlerConfig


class Ticker(Protocol):
    async def tick(self) -> None: ...

    async def aclose(self) -> None: ...


class IntervalTicker:
    """Sleeps a fixed interval per tick."""

    def __init__(self, interval: float = 0.1) -> None:
        self._interval = interval

    async def tick(self) -> None:
        await asyncio.sleep(self._interval)

    async def aclose(self) -> None:
        return None


class WatchfilesTicker:
    """Wakes on the next watchfiles change batch, or after *timeout* seconds.

    Runs ``watchfiles.awatch`` in a background task that sets an event per
    batch, so a tick that times out never cancels the watcher itself.

    Args:
        paths: Directories to watch; ones that do not exist are skipped.
        timeout: Upper bound on a single tick.
        debounce: Milliseconds watchfiles groups changes over.

    """

    def __init__(
        self,
        paths: Sequence[Path],
        *,
        timeout: float = 1.0,
        debounce: int = 50,
    ) -> None:
        self._paths = tuple(paths)
        self._timeout = timeout
        self._debounce = debounce
        self._changed = asyncio.Event()
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def tick(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._consume(), name="tinybundler-watcher")
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._changed.wait(), self._timeout)
        self._changed.clear()

    async def aclose(self) -> None:
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _consume(self) -> None:
        from watchfiles import awatch

        paths = [p for p in self._paths if p.is_dir()]
        if not paths:
            return
        async for _changes in awatch(
            *paths,
            stop_event=self._stop,
            debounce=self._debounce,
            step=50,
        ):
            self._changed.set()


def make_ticker(config: BundlerConfig) -> Ticker:
    """Ticker for ``config.watch_backend``."""
    if config.watch_backend == "watchfiles":
        return WatchfilesTicker(
            (config.frontend_path, config.backend_path),
            timeout=max(config.poll_interval, 1.0),
        )
    return IntervalTicker(config.poll_interval)
