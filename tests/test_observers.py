"""
tests/test_observers.py

Notification stream: one notice per append, synchronous, fire-and-forget.
"""

import json
import logging

import pytest

from interactlog import (
    CallbackObserver,
    InteractionLedger,
    InteractionNotice,
    JsonlObserver,
    NotificationBus,
    Observer,
    RecordingObserver,
)


class _Exploding(Observer):
    def notify(self, notice):
        raise RuntimeError("indexer down")


@pytest.fixture
def ledger():
    return InteractionLedger()


class TestNotices:

    def test_one_notice_per_append(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(recorder)

        ledger.append("alice", 100)
        ledger.append("bob", 200)

        assert recorder.notices == [
            InteractionNotice(user="alice", timestamp=100, index=0),
            InteractionNotice(user="bob",   timestamp=200, index=1),
        ]

    def test_notice_carries_assigned_index(self, ledger):
        recorder = RecordingObserver()
        for i in range(3):
            ledger.append("before", i)
        ledger.subscribe(recorder)

        index = ledger.append("carol", 42)
        assert recorder.notices[-1].index == index == 3

    def test_delivered_synchronously(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(recorder)
        ledger.append("alice", 1)
        # no waiting, no flushing
        assert len(recorder.notices) == 1

    def test_subscription_order(self, ledger):
        calls = []
        ledger.subscribe(CallbackObserver("first",  lambda n: calls.append("first")))
        ledger.subscribe(CallbackObserver("second", lambda n: calls.append("second")))
        ledger.append("alice", 1)
        assert calls == ["first", "second"]

    def test_unsubscribe_stops_delivery(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(recorder)
        ledger.append("alice", 1)
        ledger.unsubscribe(recorder)
        ledger.append("alice", 2)
        assert len(recorder.notices) == 1

    def test_double_subscribe_delivers_once(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(recorder)
        ledger.subscribe(recorder)
        ledger.append("alice", 1)
        assert len(recorder.notices) == 1

    def test_unsubscribe_unknown_is_ignored(self, ledger):
        ledger.unsubscribe(RecordingObserver())

    def test_recording_observer_clear(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(recorder)
        ledger.append("alice", 1)
        recorder.clear()
        assert recorder.notices == []

    def test_notice_to_dict(self):
        notice = InteractionNotice(user="alice", timestamp=5, index=2)
        assert notice.to_dict() == {"user": "alice", "timestamp": 5, "index": 2}


class TestFailingObservers:

    def test_failure_does_not_undo_append(self, ledger, caplog):
        ledger.subscribe(_Exploding("boom"))

        with caplog.at_level(logging.ERROR, logger="interactlog.core.observers"):
            index = ledger.append("alice", 100)

        assert index == 0
        assert ledger.total() == 1
        assert ledger.latest() == ("alice", 100)
        assert "boom" in caplog.text

    def test_failure_does_not_block_other_observers(self, ledger):
        recorder = RecordingObserver()
        ledger.subscribe(_Exploding("boom"))
        ledger.subscribe(recorder)

        ledger.append("alice", 100)
        assert len(recorder.notices) == 1

    def test_observer_cannot_append_reentrantly(self, ledger):
        """An observer that appends from notify() is rejected and logged."""
        ledger.subscribe(CallbackObserver("echo", lambda n: ledger.append("echo", n.timestamp)))
        ledger.append("alice", 1)
        assert ledger.all_users() == ["alice"]

    def test_publish_counts_deliveries(self):
        bus = NotificationBus()
        bus.subscribe(_Exploding("boom"))
        bus.subscribe(RecordingObserver())
        assert bus.publish(InteractionNotice("alice", 1, 0)) == 1

    def test_base_observer_is_abstract(self):
        with pytest.raises(NotImplementedError):
            Observer("plain").notify(InteractionNotice("alice", 1, 0))


class TestJsonlObserver:

    def test_writes_one_line_per_notice(self, ledger, tmp_path):
        path = tmp_path / "out" / "notices.jsonl"
        ledger.subscribe(JsonlObserver("indexer", path))

        ledger.append("alice", 100)
        ledger.append("bob", 200)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line) for line in lines] == [
            {"user": "alice", "timestamp": 100, "index": 0},
            {"user": "bob",   "timestamp": 200, "index": 1},
        ]

    def test_ledger_knows_nothing_of_observers(self, ledger):
        ledger.append("alice", 1)
        assert ledger.bus.observers == []
        assert ledger.get_stats()["observers"] == 0
