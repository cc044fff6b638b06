"""etcd v2 keys API watcher over aiohttp."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import aiohttp

from clusterwatch._constants import USER_AGENT, WATCH_CONNECT_TIMEOUT_SECONDS
from clusterwatch._redact import truncate_for_log
from clusterwatch.config import EtcdEndpoint
from clusterwatch.exceptions import EtcdApiError, EtcdClusterError
from clusterwatch.keys import normalize_root
from clusterwatch.models.event import WatchEvent

_logger = logging.getLogger(__name__)


class WatchSource(Protocol):
    """Structural interface for anything that yields the next store event.

    ``next()`` blocks until an event arrives.  It raises
    :class:`EtcdClusterError` for recoverable failures; any other exception
    is fatal.
    """

    async def next(self) -> WatchEvent:
        ...


def _api_error_from_body(body: Any, status: int) -> EtcdApiError | None:
    if not isinstance(body, dict) or "errorCode" not in body:
        return None
    error_code = body.get("errorCode")
    index = body.get("index")
    return EtcdApiError(
        f"etcd error {error_code}: {body.get('message', '')} ({body.get('cause', '')}) [HTTP {status}]",
        error_code=error_code if isinstance(error_code, int) else None,
        cause=str(body.get("cause", "")),
        index=index if isinstance(index, int) else None,
    )


class EtcdWatcher:
    """Recursive long-poll watcher for one etcd directory.

    Each call to :meth:`next` issues ``GET /v2/keys<root>?wait=true&recursive=true``
    and resumes from the index after the last delivered event, so no change
    is skipped between calls.
    """

    def __init__(
        self,
        endpoint: EtcdEndpoint,
        root: str,
        http_session: aiohttp.ClientSession,
        *,
        after_index: int | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._root = normalize_root(root)
        self._http = http_session
        self._next_wait_index = after_index + 1 if after_index is not None else None
        self._auth = (
            aiohttp.BasicAuth(endpoint.username, endpoint.password or "") if endpoint.username is not None else None
        )
        self._timeout = aiohttp.ClientTimeout(total=None, connect=WATCH_CONNECT_TIMEOUT_SECONDS)

    @property
    def url(self) -> str:
        return f"{self._endpoint.url}/v2/keys{self._root}"

    @property
    def next_wait_index(self) -> int | None:
        return self._next_wait_index

    def _params(self) -> dict[str, str]:
        params = {"wait": "true", "recursive": "true"}
        if self._next_wait_index is not None:
            params["waitIndex"] = str(self._next_wait_index)
        return params

    async def _request(self) -> tuple[int, str]:
        try:
            async with self._http.get(
                self.url,
                params=self._params(),
                auth=self._auth,
                timeout=self._timeout,
                headers={"user-agent": USER_AGENT},
            ) as resp:
                return resp.status, await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise EtcdClusterError(
                f"etcd watch request to {self.url} failed: {exc!r}",
                endpoint=self._endpoint.url,
            ) from exc
        except UnicodeDecodeError as exc:
            raise EtcdApiError(f"Undecodable response body from {self.url}: {exc}") from exc

    async def next(self) -> WatchEvent:
        """Block until the next change under the root and return it."""
        while True:
            status, text = await self._request()

            # etcd closes idle long polls with an empty body; re-issue.
            if status == 200 and not text.strip():
                _logger.debug("etcd watch returned empty body, re-issuing")
                continue

            # A member without a leader answers 5xx; another attempt may succeed.
            if status >= 500:
                raise EtcdClusterError(
                    f"HTTP {status} from {self.url}: {truncate_for_log(text, max_string=200)}",
                    endpoint=self._endpoint.url,
                )

            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                raise EtcdApiError(
                    f"Invalid JSON from etcd (HTTP {status}): {truncate_for_log(text, max_string=200)}"
                ) from exc

            api_error = _api_error_from_body(body, status)
            if api_error is not None:
                raise api_error
            if status != 200 or not isinstance(body, dict):
                raise EtcdApiError(f"Unexpected etcd response (HTTP {status}): {truncate_for_log(text, max_string=200)}")

            event = WatchEvent.from_etcd(body)
            if event.modified_index is not None:
                self._next_wait_index = event.modified_index + 1
            _logger.debug("%s: %s %s", event.action, event.key, truncate_for_log(event.value))
            return event


async def watch_events(
    source: WatchSource,
    *,
    retry_delay: float = 0.0,
) -> AsyncIterator[WatchEvent]:
    """Yield events from *source* forever.

    Cluster errors are logged and the watch is resumed after *retry_delay*
    seconds; any other error propagates and ends the stream.
    """
    while True:
        try:
            event = await source.next()
        except EtcdClusterError as exc:
            _logger.warning("etcd cluster error, retrying watch: %s", exc)
            if retry_delay > 0:
                await asyncio.sleep(retry_delay)
            continue
        yield event
