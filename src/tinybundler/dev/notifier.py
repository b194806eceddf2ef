"""Reload notifier — tell connected browsers that a rebuild is live.

Browsers connect to a WebSocket endpoint (``/ws``) and stay subscribed to a
single broadcast topic.  After a restart the dev loop waits, in a cancellable
background task, until the backend accepts TCP connections again and then
publishes the next revision number.  Clients reload on any new value.

Each wait belongs to a :class:`NotifyGeneration`.  Starting a new wait aborts
the previous generation, and an aborted generation never publishes, even if
its probe had already succeeded.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import TYPE_CHECKING

from websockets.asyncio.server import broadcast, serve

from tinybundler.dev.hmr import RELOAD_PATH
from tinybundler.observability.events import ReloadPublished, now_ns

if TYPE_CHECKING:
    from websockets.asyncio.server import Server, ServerConnection
    from websockets.http11 import Request, Response

    from tinybundler.observability.log import EventLog

# Backend reachability probe defaults
PROBE_HOST = "localhost"
PROBE_TIMEOUT = 1.0
RETRY_INTERVAL = 1.0


class ReloadNotifier:
    """WebSocket broadcast channel carrying reload revisions.

    Args:
        host: Bind address.
        port: Bind port.
        path: The only request path accepted; anything else gets a 404.

    """

    def __init__(self, host: str = "0.0.0.0", port: int = 7999, path: str = RELOAD_PATH) -> None:
        self._host = host
        self._port = port
        self._path = path
        self._clients: set[ServerConnection] = set()
        self._revision = 0
        self._server: Server | None = None

    @property
    def revision(self) -> int:
        """The revision the next publish will carry."""
        return self._revision

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def port(self) -> int:
        """Bound port (resolved after ``start`` when constructed with port 0)."""
        if self._server is not None:
            for sock in self._server.sockets:
                return sock.getsockname()[1]
        return self._port

    async def start(self) -> None:
        """Start accepting WebSocket clients."""
        if self._server is not None:
            return
        self._server = await serve(
            self._handler,
            self._host,
            self._port,
            process_request=self._process_request,
        )

    async def stop(self) -> None:
        """Close every client connection and the listening socket."""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._clients.clear()

    def publish(self) -> int:
        """Broadcast the next revision to every subscriber and return it."""
        revision = self._revision
        self._revision += 1
        broadcast(self._clients, str(revision))
        return revision

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if request.path != self._path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")
        return None

    async def _handler(self, connection: ServerConnection) -> None:
        # Subscribed for the lifetime of the connection; client messages are ignored
        self._clients.add(connection)
        try:
            await connection.wait_closed()
        finally:
            self._clients.discard(connection)


@dataclass(slots=True)
class NotifyGeneration:
    """Abort token for one notify wait.

    Attributes:
        number: Monotonic generation counter, for diagnostics.
        aborted: Set once a newer change supersedes this wait.
        started: ``time.perf_counter()`` when the wait began.

    """

    number: int
    aborted: bool = False
    started: float = field(default_factory=time.perf_counter)

    def abort(self) -> None:
        self.aborted = True


def probe_port() -> int:
    """Backend port from ``$PORT``, defaulting to 8080."""
    raw = os.environ.get("PORT", "")
    return int(raw) if raw.isdigit() else 8080


async def probe(host: str, port: int, timeout: float = PROBE_TIMEOUT) -> bool:
    """Return True if a TCP connection to *host*:*port* succeeds within *timeout*."""
    try:
        _reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    except (OSError, TimeoutError):
        return False
    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    return True


async def wait_and_publish(
    notifier: ReloadNotifier,
    generation: NotifyGeneration,
    *,
    host: str = PROBE_HOST,
    port: int | None = None,
    retry_interval: float = RETRY_INTERVAL,
    probe_timeout: float = PROBE_TIMEOUT,
    event_log: EventLog | None = None,
) -> int | None:
    """Probe until the backend accepts connections, then publish.

    Returns the published revision, or ``None`` if *generation* was aborted
    first.  The abort flag is checked once per retry and again right before
    publishing.
    """
    target_port = probe_port() if port is None else port
    while not generation.aborted:
        if await probe(host, target_port, probe_timeout):
            if generation.aborted:
                return None
            revision = notifier.publish()
            if event_log is not None:
                event_log.append(ReloadPublished(
                    revision=revision,
                    clients=notifier.client_count,
                    waited_ms=(time.perf_counter() - generation.started) * 1000,
                    timestamp_ns=now_ns(),
                ))
            return revision
        await asyncio.sleep(retry_interval)
    return None
