"""High-level watcher service wiring etcd, the loop and the Hub notifier."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from clusterwatch._etcd import EtcdWatcher, WatchSource, watch_events
from clusterwatch._redact import redact_url
from clusterwatch.config import WatcherConfig
from clusterwatch.dispatch import Dispatcher
from clusterwatch.exceptions import ClusterWatchError
from clusterwatch.keys import NodeKeyParser
from clusterwatch.notifier import Notifier
from clusterwatch.state.cache import StatusCache
from clusterwatch.watcher import WatchLoop

_logger = logging.getLogger(__name__)


class ClusterWatcher:
    """Watch node advertisements and forward changes to the Hub.

    Usage::

        async with ClusterWatcher(WatcherConfig.from_env()) as watcher:
            await watcher.run()

    ``source`` may be given to replace the etcd watcher (e.g. in tests).
    """

    def __init__(
        self,
        config: WatcherConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        source: WatchSource | None = None,
        cache: StatusCache | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._source = source
        self._cache = cache if cache is not None else StatusCache()
        self._dispatcher: Dispatcher | None = None
        self._loop: WatchLoop | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ClusterWatcher:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        notifier = Notifier(self._http_session, self._config.hub_url)
        self._dispatcher = Dispatcher(
            notifier.notify,
            workers=self._config.workers,
            max_pending=self._config.max_pending,
        )
        self._dispatcher.start()
        if self._source is None:
            self._source = EtcdWatcher(self._config.etcd, self._config.watch_root, self._http_session)
        self._loop = WatchLoop(
            self._dispatcher.submit,
            parser=NodeKeyParser(self._config.watch_root),
            cache=self._cache,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._dispatcher is not None:
            await self._dispatcher.close(drain_timeout=self._config.drain_timeout)
            _logger.info(
                "Notifications sent=%d failed=%d",
                self._dispatcher.sent,
                self._dispatcher.failed,
            )
            self._dispatcher = None
        if self._loop is not None:
            _logger.info("Watch stats: %s", self._loop.stats)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cache(self) -> StatusCache:
        return self._cache

    @property
    def loop(self) -> WatchLoop:
        if self._loop is None:
            raise ClusterWatchError("Watcher not started. Use 'async with ClusterWatcher(...) as watcher:'")
        return self._loop

    def describe(self) -> list[str]:
        """Effective endpoints, with credentials removed."""
        etcd = self._config.etcd
        return [
            f"etcd: {redact_url(etcd.url)}{etcd.path}",
            f"hub: {redact_url(self._config.hub_url)}",
            f"watch: {self._config.watch_root}",
        ]

    async def run(self) -> None:
        """Watch forever.

        Returns only if the event source is exhausted; fatal store errors
        propagate to the caller.
        """
        loop = self.loop
        assert self._source is not None  # noqa: S101
        for line in self.describe():
            _logger.info(line)
        await loop.run(watch_events(self._source, retry_delay=self._config.retry_delay))
