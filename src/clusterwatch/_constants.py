"""Constants shared by the watcher, classifier and notifier."""

from __future__ import annotations

#: Default etcd directory watched for cluster advertisements.
DEFAULT_WATCH_ROOT = "/service/"

#: etcd v2 action emitted when a key's TTL lapses.
EXPIRE_ACTION = "expire"

#: State reported to the Hub once a node stops advertising itself.
MISSING_STATE = "missing"

#: Total timeout for a single Hub notification request, in seconds.
NOTIFY_TIMEOUT_SECONDS = 10.0

#: Connect timeout for the long-poll watch request, in seconds.
WATCH_CONNECT_TIMEOUT_SECONDS = 60.0

#: Delay before re-issuing a watch after a recoverable cluster error.
DEFAULT_RETRY_DELAY_SECONDS = 1.0

DEFAULT_WORKERS = 8
DEFAULT_MAX_PENDING = 1024

USER_AGENT = "clusterwatch"

#: Longest time shutdown waits for queued notifications before dropping them.
DEFAULT_DRAIN_TIMEOUT_SECONDS = 15.0
