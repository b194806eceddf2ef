"""Backend supervision — one owned backend process at a time.

The supervisor is the only owner of the backend handle.  ``terminate`` sends
SIGINT and polls until the process is confirmed dead (escalating to SIGKILL
after a grace period) before the slot is released; ``spawn`` refuses while a
live process is still owned.  Two backends therefore never run at once.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tinybundler._errors import ConfigError, SupervisorError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tinybundler.config import BundlerConfig


@dataclass(frozen=True, slots=True)
class BackendHandle:
    """A spawned backend process.

    Attributes:
        process: The asyncio subprocess.
        command: Command line it was started with.

    """

    process: asyncio.subprocess.Process
    command: tuple[str, ...]

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def alive(self) -> bool:
        return self.process.returncode is None


class BackendSupervisor:
    """Spawns and terminates the backend process.

    Args:
        poll_interval: Seconds between liveness checks while terminating.
        grace_period: Seconds to wait after SIGINT before sending SIGKILL.

    """

    def __init__(self, *, poll_interval: float = 0.01, grace_period: float = 10.0) -> None:
        self._poll_interval = poll_interval
        self._grace_period = grace_period
        self._handle: BackendHandle | None = None

    @property
    def current(self) -> BackendHandle | None:
        """The owned handle, if any (may have exited on its own)."""
        return self._handle

    async def spawn(self, command: Sequence[str], *, cwd: Path | None = None) -> BackendHandle:
        """Start *command* and take ownership of it.

        Raises:
            SupervisorError: If a live backend is still owned, or the process
                cannot be started.

        """
        if self._handle is not None and self._handle.alive:
            msg = f"backend pid {self._handle.pid} is still running; terminate it first"
            raise SupervisorError(msg)
        if not command:
            msg = "empty backend command"
            raise SupervisorError(msg)

        try:
            process = await asyncio.create_subprocess_exec(*command, cwd=cwd)
        except OSError as exc:
            msg = f"failed to start {' '.join(command)!r}: {exc}"
            raise SupervisorError(msg) from exc

        self._handle = BackendHandle(process=process, command=tuple(command))
        return self._handle

    async def terminate(self) -> int | None:
        """Stop the owned backend and wait until it is gone.

        Returns the exit status, or ``None`` when nothing was owned.  An
        already-exited process is released without signalling.
        """
        handle = self._handle
        if handle is None:
            return None

        process = handle.process
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.send_signal(signal.SIGINT)

            loop = asyncio.get_running_loop()
            deadline = loop.time() + self._grace_period
            killed = False
            while process.returncode is None:
                if not killed and loop.time() >= deadline:
                    with contextlib.suppress(ProcessLookupError):
                        process.kill()
                    killed = True
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(process.wait(), self._poll_interval)

        self._handle = None
        return process.returncode


def backend_command(config: BundlerConfig) -> tuple[str, ...] | None:
    """Command line for the configured backend, or ``None`` without one.

    ``backend_command`` wins over ``backend_language``.

    Raises:
        ConfigError: For an unsupported ``backend_language``.

    """
    if config.backend_command:
        return tuple(config.backend_command)

    language = config.backend_language
    if language is None:
        return None
    if language == "rust":
        return ("cargo", "run", "--release") if config.production else ("cargo", "run")
    if language == "python":
        return (sys.executable, "-m", config.backend_dir)

    msg = f"Unsupported backend_language {language!r} (expected 'rust' or 'python')"
    raise ConfigError(msg)
