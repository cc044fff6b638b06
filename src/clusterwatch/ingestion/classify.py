"""Classify watch events into node status updates."""

from __future__ import annotations

import json
import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, ValidationError

from clusterwatch._constants import EXPIRE_ACTION, MISSING_STATE
from clusterwatch._redact import truncate_for_log
from clusterwatch.models.advert import ClusterNodeAdvert
from clusterwatch.models.event import WatchEvent
from clusterwatch.models.status import NodeIdentity, NodeStatus

_logger = logging.getLogger(__name__)

_ACTION_DESCRIPTIONS: dict[str, str] = {
    "create": "has started heart beat",
    "compareAndSwap": "heart beat",
    "compareAndDelete": "has shut down correctly",
    "expire": "has missed heartbeat",
    "set": "set",
}


class EventKind(StrEnum):
    UPSERT = "upsert"
    EXPIRE = "expire"


class ClassifiedEvent(BaseModel):
    """Result of classifying one advertisement event."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    status: NodeStatus
    decode_failed: bool = False


def describe_action(action: str) -> str:
    """Human-readable description of an etcd action, for debug logs."""
    return _ACTION_DESCRIPTIONS.get(action, f"unhandled action {action!r}")


def decode_advert(value: str) -> ClusterNodeAdvert | None:
    """Decode an advertisement payload.

    Returns ``None`` when *value* is not a JSON object with string fields.
    """
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict):
        return None
    try:
        return ClusterNodeAdvert.model_validate(parsed)
    except ValidationError:
        return None


def classify_event(event: WatchEvent, identity: NodeIdentity) -> ClassifiedEvent:
    """Map a store event for *identity* to an upsert or an expiry.

    ``expire`` yields a ``missing`` status regardless of what was cached.
    Every other action is an upsert; an undecodable payload degrades to
    empty state and role rather than reusing the previous value.
    """
    if event.action == EXPIRE_ACTION:
        return ClassifiedEvent(
            kind=EventKind.EXPIRE,
            status=NodeStatus.for_identity(identity, state=MISSING_STATE),
        )

    advert = decode_advert(event.value)
    if advert is None:
        _logger.warning(
            "Could not decode advertisement at %s: %r",
            event.key,
            truncate_for_log(event.value),
        )
        return ClassifiedEvent(
            kind=EventKind.UPSERT,
            status=NodeStatus.for_identity(identity),
            decode_failed=True,
        )

    return ClassifiedEvent(
        kind=EventKind.UPSERT,
        status=NodeStatus.for_identity(identity, state=advert.state, role=advert.role),
    )
