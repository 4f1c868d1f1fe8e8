import asyncio
import logging

import pytest

from amaru_bridge.collector import RecordCollector
from amaru_bridge.drain import DrainLoop
from amaru_bridge.errors import NoSubscriberError
from amaru_bridge.publisher import EventChannel, EventPublisher


class RecordingEmitter:
    def __init__(self):
        self.calls = []

    def __call__(self, channel, payload):
        self.calls.append((channel, payload))


@pytest.fixture
def collector():
    return RecordCollector()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def drain_loop(collector, emitter):
    return DrainLoop(collector, EventPublisher(emitter), polling_interval=0.01)


def test_one_cycle_publishes_bootstrap_import_in_order(collector, emitter, drain_loop):
    collector.record({"name": "Importing snapshots"})
    collector.record({"name": "Importing snapshot", "snapshot": "123"})
    collector.record({"name": "Imported snapshot", "epoch": "5"})
    collector.record({"name": "Imported snapshots"})

    assert drain_loop.drain_once() == 4
    assert emitter.calls == [
        ("amaru", {"type": "bootstrap", "payload": {"kind": "importing_snapshots"}}),
        ("amaru", {"type": "bootstrap", "payload": {"kind": "importing_snapshot", "snapshot": "123"}}),
        ("amaru", {"type": "bootstrap", "payload": {"kind": "imported_snapshot", "epoch": 5}}),
        ("amaru", {"type": "bootstrap", "payload": {"kind": "imported_snapshots"}}),
    ]


def test_unrecognized_records_are_skipped(collector, emitter, drain_loop):
    collector.record({"name": "chain_sync.roll_forward"})
    collector.record({"name": "new.known_snapshots"})
    collector.record({"message": "no name at all"})

    assert drain_loop.drain_once() == 1
    assert [payload["payload"]["kind"] for _, payload in emitter.calls] == ["creating_state"]
    assert len(collector) == 0


def test_empty_cycle_publishes_nothing(emitter, drain_loop):
    assert drain_loop.drain_once() == 0
    assert emitter.calls == []


def test_publish_failures_do_not_stop_the_cycle(collector):
    attempts = []

    def flaky_emit(channel, payload):
        attempts.append(payload["payload"]["kind"])
        if len(attempts) == 1:
            raise ConnectionError("window closed")

    drain_loop = DrainLoop(collector, EventPublisher(flaky_emit))
    collector.record({"name": "Importing snapshots"})
    collector.record({"name": "Imported snapshots"})

    assert drain_loop.drain_once() == 2
    assert attempts == ["importing_snapshots", "imported_snapshots"]


def test_publisher_uses_its_channel(emitter, collector):
    drain_loop = DrainLoop(collector, EventPublisher(emitter, channel="node"))
    collector.record({"name": "starting", "tip": {"slot": 9}})
    drain_loop.drain_once()
    assert emitter.calls == [("node", {"type": "runtime", "payload": {"kind": "starting", "tip": 9}})]


@pytest.mark.asyncio
async def test_loop_drains_periodically(collector, emitter, drain_loop):
    await drain_loop.start()
    try:
        assert drain_loop.running
        collector.record({"name": "epoch_transition", "from": 214, "into": 215})
        await asyncio.sleep(0.1)
        assert emitter.calls == [
            ("amaru", {"type": "runtime", "payload": {"kind": "epoch_transition", "from": 214, "into": 215}})
        ]

        collector.record({"name": "track_peers.caught_up.new_tip", "point": "70070379.d6fe6439"})
        await asyncio.sleep(0.1)
        assert emitter.calls[-1] == ("amaru", {"type": "runtime", "payload": {"kind": "tip_caught_up", "slot": 70070379}})
    finally:
        await drain_loop.stop()
    assert not drain_loop.running


@pytest.mark.asyncio
async def test_loop_survives_missing_subscriber(collector):
    channel = EventChannel()
    drain_loop = DrainLoop(collector, EventPublisher(channel.emit), polling_interval=0.01)
    await drain_loop.start()
    try:
        # Nobody is listening yet: the event is dropped.
        collector.record({"name": "Importing snapshots"})
        await asyncio.sleep(0.05)

        queue = channel.subscribe("amaru")
        collector.record({"name": "Imported snapshots"})
        payload = await asyncio.wait_for(queue.get(), timeout=1)
        assert payload == {"type": "bootstrap", "payload": {"kind": "imported_snapshots"}}
        assert queue.empty()
        assert drain_loop.running
    finally:
        await drain_loop.stop()


@pytest.mark.asyncio
async def test_channel_fans_out_and_unsubscribes():
    channel = EventChannel()
    first = channel.subscribe("amaru")
    second = channel.subscribe("amaru")
    other = channel.subscribe("other")

    channel.emit("amaru", {"n": 1})
    assert first.get_nowait() == {"n": 1}
    assert second.get_nowait() == {"n": 1}
    assert other.empty()

    channel.unsubscribe("amaru", first)
    channel.unsubscribe("amaru", second)
    with pytest.raises(NoSubscriberError):
        channel.emit("amaru", {"n": 2})


def test_dropped_events_are_logged_at_debug(collector, caplog):
    def broken_emit(channel, payload):
        raise NoSubscriberError("no subscriber")

    drain_loop = DrainLoop(collector, EventPublisher(broken_emit))
    collector.record({"name": "Imported snapshots"})
    with caplog.at_level(logging.DEBUG):
        drain_loop.drain_once()
    assert "Dropped bootstrap/imported_snapshots event" in caplog.text


def test_oversized_numbers_do_not_lose_the_cycle(collector, emitter, drain_loop):
    collector.record({"name": "track_peers.syncing.new_tip", "point": "1" * 5000 + ".abc"})
    collector.record({"name": "Downloading snapshot", "epoch": "9" * 5000})
    collector.record({"name": "Imported snapshots"})

    assert drain_loop.drain_once() == 3
    assert [payload["payload"] for _, payload in emitter.calls] == [
        {"kind": "tip_syncing", "slot": 0},
        {"kind": "downloading_snapshot", "epoch": 0},
        {"kind": "imported_snapshots"},
    ]


def test_a_failing_record_does_not_drop_the_rest_of_the_cycle(collector, emitter, drain_loop, caplog):
    class BrokenRecord(dict):
        def get(self, key, default=None):
            raise KeyError(key)

    collector.record({"name": "Importing snapshots"})
    collector.record(BrokenRecord(name="Imported snapshot"))
    collector.record({"name": "Imported snapshots"})

    with caplog.at_level(logging.WARNING):
        assert drain_loop.drain_once() == 2
    assert [payload["payload"]["kind"] for _, payload in emitter.calls] == ["importing_snapshots", "imported_snapshots"]
    assert "skipping unclassifiable record" in caplog.text
