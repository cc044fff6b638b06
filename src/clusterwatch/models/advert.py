"""Advertisement record written by each cluster node."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ClusterNodeAdvert(BaseModel):
    """Self-advertisement stored by a node under ``<root>/<cluster>/nodes/<node>``.

    Example payload::

        {"cell_guid": "54.159.121.202", "node_id": "54-159-121-202-5000",
         "state": "running", "role": "master"}

    Nodes that have not finished bootstrapping omit ``role``; missing fields
    decode to ``""``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    cell_guid: str = ""
    node_id: str = ""
    state: str = ""
    role: str = ""

    @field_validator("cell_guid", "node_id", "state", "role", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value
