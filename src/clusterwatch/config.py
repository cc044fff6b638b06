"""Process configuration for clusterwatch."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import SplitResult, urlsplit

from clusterwatch._constants import (
    DEFAULT_DRAIN_TIMEOUT_SECONDS,
    DEFAULT_MAX_PENDING,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_WATCH_ROOT,
    DEFAULT_WORKERS,
)
from clusterwatch.exceptions import WatcherConfigError


def _split_uri(value: str) -> SplitResult | None:
    """Split *value*, returning ``None`` when it has no usable scheme/host."""
    try:
        parts = urlsplit(value.strip())
        # Accessing .port validates it.
        _ = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    return parts


def _host_url(parts: SplitResult) -> str:
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


@dataclasses.dataclass(frozen=True)
class EtcdEndpoint:
    """Connection details for the etcd v2 keys API.

    ``url`` holds scheme and host only; credentials embedded in the URI are
    split out so they never appear in request URLs or logs.
    """

    url: str
    path: str = ""
    username: str | None = None
    password: str | None = None

    @classmethod
    def parse(cls, value: str) -> EtcdEndpoint | None:
        parts = _split_uri(value)
        if parts is None:
            return None
        return cls(
            url=_host_url(parts),
            path=parts.path,
            username=parts.username or None,
            password=parts.password,
        )


@dataclasses.dataclass(frozen=True)
class WatcherConfig:
    """Watcher configuration.

    Parameters
    ----------
    etcd : EtcdEndpoint
        etcd endpoint to watch.
    hub_url : str
        Base URL of the Hub API receiving change notifications.  A trailing
        slash is stripped.
    watch_root : str
        etcd directory watched recursively.  Defaults to ``/service/``.
    workers : int
        Number of concurrent notification workers.
    max_pending : int
        Capacity of the notification queue.  When full, the watch loop waits
        for room before reading the next event.
    retry_delay : float
        Seconds to wait before re-issuing a watch after a cluster error.
    drain_timeout : float
        Seconds shutdown waits for queued notifications before dropping them.
    """

    etcd: EtcdEndpoint
    hub_url: str
    watch_root: str = DEFAULT_WATCH_ROOT
    workers: int = DEFAULT_WORKERS
    max_pending: int = DEFAULT_MAX_PENDING
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    drain_timeout: float = DEFAULT_DRAIN_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "hub_url", self.hub_url.rstrip("/"))
        if self.workers < 1:
            raise WatcherConfigError(f"workers must be >= 1, got {self.workers}")
        if self.max_pending < 1:
            raise WatcherConfigError(f"max_pending must be >= 1, got {self.max_pending}")
        if self.retry_delay < 0:
            raise WatcherConfigError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.drain_timeout < 0:
            raise WatcherConfigError(f"drain_timeout must be >= 0, got {self.drain_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> WatcherConfig:
        """Create configuration from environment variables.

        Reads ``ETCD_URI`` and ``HUB_URI`` (both required), plus optional
        ``WATCH_ROOT_PATH``, ``WATCHER_WORKERS``, ``WATCHER_MAX_PENDING``, ``WATCHER_RETRY_DELAY`` and
        ``WATCHER_DRAIN_TIMEOUT``.  Explicit keyword arguments override
        environment values.

        Raises
        ------
        WatcherConfigError
            When a required URI is missing or malformed.  All problems are
            collected before raising.
        """
        env = os.environ
        problems: list[str] = []
        config_kwargs: dict[str, Any] = {}

        if "etcd" not in overrides:
            raw_etcd = env.get("ETCD_URI", "")
            etcd = EtcdEndpoint.parse(raw_etcd)
            if etcd is None:
                problems.append(f"Missing or malformed $ETCD_URI: '{raw_etcd}'")
            else:
                config_kwargs["etcd"] = etcd

        if "hub_url" not in overrides:
            raw_hub = env.get("HUB_URI", "")
            hub = _split_uri(raw_hub)
            if hub is None:
                problems.append(f"Missing or malformed $HUB_URI: '{raw_hub}'")
            else:
                config_kwargs["hub_url"] = raw_hub.strip()

        if problems:
            raise WatcherConfigError("; ".join(problems), problems=problems)

        root_env = env.get("WATCH_ROOT_PATH")
        if root_env:
            config_kwargs["watch_root"] = root_env

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "WATCHER_WORKERS": ("workers", int),
            "WATCHER_MAX_PENDING": ("max_pending", int),
            "WATCHER_RETRY_DELAY": ("retry_delay", float),
            "WATCHER_DRAIN_TIMEOUT": ("drain_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise WatcherConfigError(f"Invalid ${env_key}: '{val}'") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
