from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import pytest

from clusterwatch.keys import NodeKeyParser
from clusterwatch.models.event import WatchEvent
from clusterwatch.models.status import NodeStatus
from clusterwatch.state.cache import StatusCache
from clusterwatch.watcher import WatchLoop

_RUNNING_MASTER = '{"cell_guid":"54.159.121.202","node_id":"n1","state":"running","role":"master"}'
_RUNNING_REPLICA = '{"cell_guid":"54.159.121.202","node_id":"n1","state":"running","role":"replica"}'


class _RecordingSubmit:
    """Collects submitted statuses and checks the cache was updated first."""

    def __init__(self) -> None:
        self.statuses: list[NodeStatus] = []
        self.loop: WatchLoop | None = None
        self.cache_at_submit: list[dict[str, NodeStatus]] = []

    async def __call__(self, status: NodeStatus) -> None:
        self.statuses.append(status)
        if self.loop is not None:
            self.cache_at_submit.append(self.loop.cache.snapshot())


def _loop(root: str = "/service/") -> tuple[WatchLoop, _RecordingSubmit]:
    submit = _RecordingSubmit()
    loop = WatchLoop(submit, parser=NodeKeyParser(root), cache=StatusCache())
    submit.loop = loop
    return loop, submit


async def _stream(events: list[WatchEvent]) -> AsyncIterator[WatchEvent]:
    for event in events:
        yield event


@pytest.mark.asyncio
async def test_identical_upserts_dispatch_once() -> None:
    loop, submit = _loop()
    event = WatchEvent(
        action="set",
        key="/service/c1/nodes/n1",
        value='{"state":"running","role":"master"}',
    )

    await loop.run(_stream([event, event]))

    expected = NodeStatus(cluster="c1", node="n1", state="running", role="master")
    assert submit.statuses == [expected]
    assert loop.cache.snapshot() == {"/service/c1/nodes/n1": expected}
    assert loop.stats.unchanged == 1


@pytest.mark.asyncio
async def test_differing_upserts_dispatch_each_new_value() -> None:
    loop, submit = _loop()

    await loop.run(
        _stream(
            [
                WatchEvent(action="set", key="/service/c1/nodes/n1", value=_RUNNING_REPLICA),
                WatchEvent(action="compareAndSwap", key="/service/c1/nodes/n1", value=_RUNNING_MASTER),
            ]
        )
    )

    assert [s.role for s in submit.statuses] == ["replica", "master"]
    assert loop.cache.get("/service/c1/nodes/n1") == submit.statuses[-1]


@pytest.mark.asyncio
async def test_expire_removes_entry_and_dispatches_missing() -> None:
    loop, submit = _loop()
    loop.cache.observe(
        "/service/c1/nodes/n1",
        NodeStatus(cluster="c1", node="n1", state="running", role="master"),
    )

    dispatched = await loop.process(WatchEvent(action="expire", key="/service/c1/nodes/n1"))

    expected = NodeStatus(cluster="c1", node="n1", state="missing", role="")
    assert dispatched == expected
    assert submit.statuses == [expected]
    assert "/service/c1/nodes/n1" not in loop.cache


@pytest.mark.asyncio
async def test_expire_without_cached_entry_still_dispatches() -> None:
    loop, submit = _loop()

    await loop.process(WatchEvent(action="expire", key="/service/c1/nodes/n1"))
    await loop.process(WatchEvent(action="expire", key="/service/c1/nodes/n1"))

    assert len(submit.statuses) == 2
    assert len(loop.cache) == 0


@pytest.mark.asyncio
async def test_recreated_key_after_expire_dispatches_again() -> None:
    loop, submit = _loop()
    key = "/service/c1/nodes/n1"

    await loop.run(
        _stream(
            [
                WatchEvent(action="set", key=key, value=_RUNNING_MASTER),
                WatchEvent(action="expire", key=key),
                WatchEvent(action="create", key=key, value=_RUNNING_MASTER),
            ]
        )
    )

    assert [s.state for s in submit.statuses] == ["running", "missing", "running"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key",
    [
        "/service/c1/leader",
        "/service/c1/members/n1",
        "/service/c1/config",
        "/service/c1/optime/leader",
        "/elsewhere/c1/nodes/n1",
    ],
)
async def test_non_matching_keys_never_touch_cache_or_dispatch(key: str) -> None:
    loop, submit = _loop()

    for action in ("set", "expire"):
        assert await loop.process(WatchEvent(action=action, key=key, value=_RUNNING_MASTER)) is None

    assert submit.statuses == []
    assert len(loop.cache) == 0
    assert loop.stats.ignored == 2


@pytest.mark.asyncio
async def test_decode_failure_on_fresh_key_dispatches_empty_status() -> None:
    loop, submit = _loop()

    await loop.process(WatchEvent(action="create", key="/service/c2/nodes/n9", value="not-json"))

    expected = NodeStatus(cluster="c2", node="n9", state="", role="")
    assert submit.statuses == [expected]
    assert loop.cache.get("/service/c2/nodes/n9") == expected
    assert loop.stats.decode_failures == 1


@pytest.mark.asyncio
async def test_decode_failure_is_compared_against_cached_value() -> None:
    loop, submit = _loop()
    key = "/service/c1/nodes/n1"

    await loop.run(
        _stream(
            [
                WatchEvent(action="set", key=key, value=_RUNNING_MASTER),
                WatchEvent(action="set", key=key, value="{broken"),
                WatchEvent(action="set", key=key, value="{still broken"),
            ]
        )
    )

    assert [(s.state, s.role) for s in submit.statuses] == [("running", "master"), ("", "")]
    assert loop.cache.get(key) == NodeStatus(cluster="c1", node="n1")


@pytest.mark.asyncio
async def test_cache_is_updated_before_submit() -> None:
    loop, submit = _loop()
    key = "/service/c1/nodes/n1"

    await loop.run(
        _stream(
            [
                WatchEvent(action="set", key=key, value=_RUNNING_REPLICA),
                WatchEvent(action="expire", key=key),
            ]
        )
    )

    assert submit.cache_at_submit[0][key].role == "replica"
    assert key not in submit.cache_at_submit[1]


@pytest.mark.asyncio
async def test_nodes_are_tracked_independently() -> None:
    loop, submit = _loop()

    await loop.run(
        _stream(
            [
                WatchEvent(action="set", key="/service/c1/nodes/n1", value=_RUNNING_MASTER),
                WatchEvent(action="set", key="/service/c1/nodes/n2", value=_RUNNING_MASTER),
                WatchEvent(action="set", key="/service/c2/nodes/n1", value=_RUNNING_MASTER),
                WatchEvent(action="set", key="/service/c1/nodes/n1", value=_RUNNING_MASTER),
            ]
        )
    )

    assert [(s.cluster, s.node) for s in submit.statuses] == [("c1", "n1"), ("c1", "n2"), ("c2", "n1")]
    assert len(loop.cache) == 3


@pytest.mark.asyncio
async def test_expire_logs_last_advertisement(caplog: pytest.LogCaptureFixture) -> None:
    loop, _submit = _loop()

    with caplog.at_level(logging.INFO, logger="clusterwatch.watcher"):
        await loop.process(
            WatchEvent(action="expire", key="/service/c1/nodes/n1", prev_value=_RUNNING_MASTER)
        )

    assert "/service/c1/nodes/n1 disappeared" in caplog.text
    assert '"role":"master"' in caplog.text
