"""In-memory cache of last observed node statuses.

Owned by the watch loop; the loop processes one event at a time, so no
locking is needed.
"""

from __future__ import annotations

from clusterwatch.models.status import NodeStatus


class StatusCache:
    """Map of etcd key to the last :class:`NodeStatus` computed for it."""

    def __init__(self) -> None:
        self._statuses: dict[str, NodeStatus] = {}

    def observe(self, key: str, status: NodeStatus) -> bool:
        """Store *status* for *key* and report whether it differs from the cached one.

        A key seen for the first time always counts as changed.
        """
        previous = self._statuses.get(key)
        self._statuses[key] = status
        return previous is None or previous != status

    def remove(self, key: str) -> NodeStatus | None:
        """Forget *key*, returning the status it held (if any)."""
        return self._statuses.pop(key, None)

    def get(self, key: str) -> NodeStatus | None:
        return self._statuses.get(key)

    def snapshot(self) -> dict[str, NodeStatus]:
        """Shallow copy of the current mapping."""
        return dict(self._statuses)

    def __contains__(self, key: object) -> bool:
        return key in self._statuses

    def __len__(self) -> int:
        return len(self._statuses)
