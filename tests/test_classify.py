from __future__ import annotations

import logging

import pytest

from clusterwatch.ingestion.classify import EventKind, classify_event, decode_advert, describe_action
from clusterwatch.models.event import WatchEvent
from clusterwatch.models.status import NodeIdentity, NodeStatus

_IDENTITY = NodeIdentity(cluster="c1", node="n1")
_ADVERT = '{"cell_guid":"54.159.121.202","node_id":"54-159-121-202-5000","state":"running","role":"master"}'


def _event(action: str, value: str = "") -> WatchEvent:
    return WatchEvent(action=action, key="/service/c1/nodes/n1", value=value)


@pytest.mark.parametrize("action", ["create", "set", "update", "compareAndSwap"])
def test_non_expire_actions_are_upserts(action: str) -> None:
    classified = classify_event(_event(action, _ADVERT), _IDENTITY)

    assert classified.kind is EventKind.UPSERT
    assert classified.status == NodeStatus(cluster="c1", node="n1", state="running", role="master")
    assert classified.decode_failed is False


def test_expire_forces_missing_state_and_empty_role() -> None:
    classified = classify_event(_event("expire", _ADVERT), _IDENTITY)

    assert classified.kind is EventKind.EXPIRE
    assert classified.status == NodeStatus(cluster="c1", node="n1", state="missing", role="")


def test_advert_without_role_decodes_to_empty_role() -> None:
    value = '{"cell_guid":"54.159.121.202","node_id":"54-159-121-202-5000","state":"api-not-available"}'

    classified = classify_event(_event("set", value), _IDENTITY)

    assert classified.status.state == "api-not-available"
    assert classified.status.role == ""


@pytest.mark.parametrize("value", ["not-json", "", "[1, 2]", '"running"', '{"state": 5}'])
def test_undecodable_payload_degrades_to_empty_status(value: str, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="clusterwatch.ingestion.classify"):
        classified = classify_event(_event("create", value), _IDENTITY)

    assert classified.kind is EventKind.UPSERT
    assert classified.decode_failed is True
    assert classified.status == NodeStatus(cluster="c1", node="n1", state="", role="")
    assert "Could not decode advertisement" in caplog.text


def test_decode_advert_ignores_unknown_fields_and_null() -> None:
    advert = decode_advert('{"state": "running", "role": null, "xlog_location": 385876120}')

    assert advert is not None
    assert advert.state == "running"
    assert advert.role == ""


def test_describe_action() -> None:
    assert describe_action("expire") == "has missed heartbeat"
    assert describe_action("compareAndSwap") == "heart beat"
    assert "delete" in describe_action("delete")
