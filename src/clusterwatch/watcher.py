"""Watch-diff-dispatch loop."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncIterable, Awaitable, Callable

from clusterwatch._redact import truncate_for_log
from clusterwatch.ingestion.classify import EventKind, classify_event, describe_action
from clusterwatch.keys import NodeKeyParser
from clusterwatch.models.event import WatchEvent
from clusterwatch.models.status import NodeStatus
from clusterwatch.state.cache import StatusCache

_logger = logging.getLogger(__name__)

SubmitFn = Callable[[NodeStatus], Awaitable[None]]


@dataclasses.dataclass
class WatchStats:
    """Counters describing what the loop has processed so far."""

    events: int = 0
    ignored: int = 0
    upserts: int = 0
    expires: int = 0
    unchanged: int = 0
    decode_failures: int = 0
    dispatched: int = 0


class WatchLoop:
    """Consume store events and dispatch a notification for each real change.

    Events are handled one at a time.  The cache is updated before the
    notification is submitted, so it always reflects the latest processed
    event even while older notifications are still in flight.

    Usage::

        loop = WatchLoop(submit=dispatcher.submit, parser=NodeKeyParser("/service/"))
        await loop.run(watch_events(etcd_watcher))
    """

    def __init__(
        self,
        submit: SubmitFn,
        *,
        parser: NodeKeyParser | None = None,
        cache: StatusCache | None = None,
    ) -> None:
        self._submit = submit
        self._parser = parser or NodeKeyParser()
        self._cache = cache if cache is not None else StatusCache()
        self.stats = WatchStats()

    @property
    def cache(self) -> StatusCache:
        return self._cache

    @property
    def parser(self) -> NodeKeyParser:
        return self._parser

    async def process(self, event: WatchEvent) -> NodeStatus | None:
        """Handle one event; return the status submitted for notification, if any."""
        self.stats.events += 1

        identity = self._parser.parse(event.key)
        if identity is None:
            self.stats.ignored += 1
            return None

        _logger.debug("%s %s", identity.node, describe_action(event.action))
        classified = classify_event(event, identity)
        status = classified.status

        if classified.kind is EventKind.EXPIRE:
            self.stats.expires += 1
            self._cache.remove(event.key)
            _logger.info("%s disappeared (last advert: %s)", event.key, truncate_for_log(event.prev_value))
        else:
            self.stats.upserts += 1
            if classified.decode_failed:
                self.stats.decode_failures += 1
            changed = self._cache.observe(event.key, status)
            _logger.debug("%s changed: %s", status, changed)
            if not changed:
                self.stats.unchanged += 1
                return None

        await self._submit(status)
        self.stats.dispatched += 1
        return status

    async def run(self, events: AsyncIterable[WatchEvent]) -> None:
        """Process *events* until the stream ends or raises."""
        _logger.info("Watching for '%s'...", self._parser.pattern.pattern)
        async for event in events:
            await self.process(event)
