"""Watch events emitted by the coordination store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class WatchEvent(BaseModel):
    """A single change observed under the watched directory.

    ``value`` is ``""`` when etcd omits it, which is the case for ``expire``
    and ``delete`` actions.
    """

    model_config = ConfigDict(frozen=True)

    action: str
    key: str
    value: str = ""
    modified_index: int | None = None
    prev_value: str | None = None
    """Value the key held before this change, when etcd reports it."""

    @classmethod
    def from_etcd(cls, body: dict[str, Any]) -> WatchEvent:
        """Build an event from an etcd v2 ``GET ?wait=true`` response body."""
        node = body.get("node") or {}
        prev = body.get("prevNode") or {}
        modified = node.get("modifiedIndex")
        return cls(
            action=str(body.get("action", "")),
            key=str(node.get("key", "")),
            value=node.get("value") or "",
            modified_index=modified if isinstance(modified, int) else None,
            prev_value=prev.get("value"),
        )
