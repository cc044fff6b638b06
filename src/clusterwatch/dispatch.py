"""Background dispatch of Hub notifications.

Notifications run on worker tasks so a slow Hub never stalls the watch
loop.  The queue is bounded: once ``max_pending`` notifications are waiting,
:meth:`Dispatcher.submit` waits for room, which in turn pauses event
consumption instead of piling up unbounded in-flight requests.

No ordering is guaranteed between notifications, even for the same node.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from clusterwatch._constants import DEFAULT_MAX_PENDING, DEFAULT_WORKERS
from clusterwatch.exceptions import ClusterWatchError, HubTransportError
from clusterwatch.models.status import NodeStatus

_logger = logging.getLogger(__name__)

NotifyFn = Callable[[NodeStatus], Awaitable[None]]


class Dispatcher:
    """Bounded worker pool running a notify callable per submitted status."""

    def __init__(
        self,
        notify: NotifyFn,
        *,
        workers: int = DEFAULT_WORKERS,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        self._notify = notify
        self._worker_count = workers
        self._queue: asyncio.Queue[NodeStatus] = asyncio.Queue(maxsize=max_pending)
        self._workers: list[asyncio.Task[None]] = []
        self._closed = False
        self.sent = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        if self._workers:
            return
        self._closed = False
        self._workers = [
            asyncio.create_task(self._run_worker(), name=f"clusterwatch-notify-{i}") for i in range(self._worker_count)
        ]

    async def submit(self, status: NodeStatus) -> None:
        """Queue *status* for delivery, waiting only while the queue is full."""
        if self._closed:
            raise ClusterWatchError("Dispatcher is closed")
        if not self._workers:
            self.start()
        await self._queue.put(status)

    async def _run_worker(self) -> None:
        while True:
            status = await self._queue.get()
            try:
                await self._notify(status)
                self.sent += 1
            except HubTransportError as exc:
                self.failed += 1
                _logger.error("Notification for %s/%s failed: %s", status.cluster, status.node, exc)
            except Exception:
                self.failed += 1
                _logger.exception("Unexpected notification failure for %s/%s", status.cluster, status.node)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued notification has been attempted."""
        await self._queue.join()

    async def close(self, *, drain: bool = True, drain_timeout: float | None = None) -> None:
        """Stop accepting work and shut down the workers.

        With *drain* (the default) queued notifications are attempted first,
        for at most *drain_timeout* seconds when given; whatever is still
        queued after that is dropped.
        """
        self._closed = True
        if drain and self._workers:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except TimeoutError:
                _logger.warning("Dropping %d undelivered notifications on shutdown", self._queue.qsize())
        workers = self._workers
        self._workers = []
        for task in workers:
            task.cancel()
        for task in workers:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> Dispatcher:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
