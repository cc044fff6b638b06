"""Data models for clusterwatch."""

from clusterwatch.models.advert import ClusterNodeAdvert
from clusterwatch.models.event import WatchEvent
from clusterwatch.models.status import NodeIdentity, NodeStatus

__all__ = [
    "ClusterNodeAdvert",
    "NodeIdentity",
    "NodeStatus",
    "WatchEvent",
]
