"""Hub notifications for node status changes."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import aiohttp

from clusterwatch._constants import NOTIFY_TIMEOUT_SECONDS, USER_AGENT
from clusterwatch.exceptions import HubTransportError
from clusterwatch.models.status import NodeStatus

_logger = logging.getLogger(__name__)


def notification_url(hub_url: str, status: NodeStatus) -> str:
    """``<hub_url>/watcher/clusters/<cluster>/nodes/<node>``."""
    cluster = quote(status.cluster, safe="")
    node = quote(status.node, safe="")
    return f"{hub_url.rstrip('/')}/watcher/clusters/{cluster}/nodes/{node}"


async def publish_change(
    http: aiohttp.ClientSession,
    hub_url: str,
    status: NodeStatus,
    *,
    timeout: float = NOTIFY_TIMEOUT_SECONDS,
) -> None:
    """POST *status* to the Hub.

    A non-200 answer is logged and otherwise ignored.

    Raises
    ------
    HubTransportError
        When the request could not be sent or no response arrived in time.
    """
    _logger.info("changed: %s", status)
    url = notification_url(hub_url, status)
    body = status.model_dump_json()

    try:
        async with http.post(
            url,
            data=body,
            headers={"content-type": "application/json", "user-agent": USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status != 200:
                _logger.warning("Failed updating %s, got status code %d", url, resp.status)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise HubTransportError(f"Request to {url} failed: {exc!r}", url=url) from exc


class Notifier:
    """Binds an HTTP session and Hub base URL for :func:`publish_change`."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        hub_url: str,
        *,
        timeout: float = NOTIFY_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http_session
        self._hub_url = hub_url.rstrip("/")
        self._timeout = timeout

    @property
    def hub_url(self) -> str:
        return self._hub_url

    async def notify(self, status: NodeStatus) -> None:
        await publish_change(self._http, self._hub_url, status, timeout=self._timeout)
