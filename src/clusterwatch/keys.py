"""Advertisement key parsing.

Only keys of the shape ``<root><cluster>/nodes/<node>`` carry node
advertisements.  Sibling entries written by the cluster manager
(``leader``, ``members/<node>``, ``config``, ``optime/leader``,
``initialize``) are ignored.
"""

from __future__ import annotations

import re

from clusterwatch._constants import DEFAULT_WATCH_ROOT
from clusterwatch.models.status import NodeIdentity


def normalize_root(root: str) -> str:
    """Return *root* with exactly one leading and one trailing slash."""
    stripped = root.strip().strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


class NodeKeyParser:
    """Extract ``(cluster, node)`` from advertisement keys under *root*."""

    def __init__(self, root: str = DEFAULT_WATCH_ROOT) -> None:
        self._root = normalize_root(root)
        self._pattern = re.compile(rf"^{re.escape(self._root)}(?P<cluster>[^/]+)/nodes/(?P<node>[^/]+)$")

    @property
    def root(self) -> str:
        return self._root

    @property
    def pattern(self) -> re.Pattern[str]:
        return self._pattern

    def parse(self, key: str) -> NodeIdentity | None:
        """Return the identity encoded in *key*, or ``None`` when it doesn't match."""
        match = self._pattern.match(key)
        if match is None:
            return None
        return NodeIdentity(cluster=match.group("cluster"), node=match.group("node"))
