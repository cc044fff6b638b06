"""Canonical per-node status reported to the Hub."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class NodeIdentity(BaseModel):
    """Cluster/node pair extracted from an advertisement key."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    node: str


class NodeStatus(BaseModel):
    """Change notification payload sent to the Hub.

    Compared by value; instances are immutable, so a status handed to the
    dispatcher can never change under it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cluster: str
    node: str
    state: str = ""
    role: str = ""

    @classmethod
    def for_identity(cls, identity: NodeIdentity, *, state: str = "", role: str = "") -> NodeStatus:
        return cls(cluster=identity.cluster, node=identity.node, state=state, role=role)

    def __str__(self) -> str:
        return f"{{{self.cluster} {self.node} {self.state} {self.role}}}"
