"""clusterwatch - forward etcd node advertisement changes to the Hub."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("clusterwatch")
except PackageNotFoundError:
    __version__ = "0+local"

from clusterwatch.config import EtcdEndpoint, WatcherConfig
from clusterwatch.dispatch import Dispatcher
from clusterwatch.exceptions import (
    ClusterWatchError,
    EtcdApiError,
    EtcdClusterError,
    EtcdError,
    HubTransportError,
    WatcherConfigError,
)
from clusterwatch.keys import NodeKeyParser
from clusterwatch.models import ClusterNodeAdvert, NodeIdentity, NodeStatus, WatchEvent
from clusterwatch.notifier import Notifier, publish_change
from clusterwatch.service import ClusterWatcher
from clusterwatch.state.cache import StatusCache
from clusterwatch.watcher import WatchLoop, WatchStats

__all__ = [
    "__version__",
    "ClusterNodeAdvert",
    "ClusterWatchError",
    "ClusterWatcher",
    "Dispatcher",
    "EtcdApiError",
    "EtcdClusterError",
    "EtcdEndpoint",
    "EtcdError",
    "HubTransportError",
    "NodeIdentity",
    "NodeKeyParser",
    "NodeStatus",
    "Notifier",
    "StatusCache",
    "WatchEvent",
    "WatchLoop",
    "WatchStats",
    "WatcherConfig",
    "WatcherConfigError",
    "publish_change",
]
