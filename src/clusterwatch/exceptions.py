"""Custom exception hierarchy for clusterwatch."""

from __future__ import annotations


class ClusterWatchError(Exception):
    """Base exception for all clusterwatch errors."""


class WatcherConfigError(ClusterWatchError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, *, problems: list[str] | None = None) -> None:
        self.problems = list(problems or [])
        super().__init__(message)


class EtcdError(ClusterWatchError):
    """Failure while watching the coordination store."""


class EtcdClusterError(EtcdError):
    """No etcd member could be reached or none answered sanely.

    Covers connection failures, timeouts and 5xx responses without an etcd
    error body.  The watcher logs these and re-issues the watch.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class EtcdApiError(EtcdError):
    """etcd answered with an error body (e.g. ``401`` event index cleared).

    These are not retried; the process terminates.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: int | None = None,
        cause: str = "",
        index: int | None = None,
    ) -> None:
        self.error_code = error_code
        self.cause = cause
        self.index = index
        super().__init__(message)


class HubTransportError(ClusterWatchError):
    """Notification request to the Hub could not be completed."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)
