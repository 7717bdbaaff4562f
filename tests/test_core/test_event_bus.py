import pytest
from skilltrees.core.events import EventBus
from skilltrees.progression import ProgressionEvent


@pytest.fixture
def bus():
    return EventBus()


class Tracker:
    def __init__(self):
        self.keys = []

    def on_learned(self, event):
        self.keys.append(event["node_key"])


def test_handler_receives_event_data(bus):
    tracker = Tracker()
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, tracker.on_learned)

    event = bus.publish(ProgressionEvent.SKILL_LEARNED, actor_id=1, node_key="guard")

    assert tracker.keys == ["guard"]
    assert event.type is ProgressionEvent.SKILL_LEARNED
    assert event.get("actor_id") == 1
    assert event.get("level", 0) == 0


def test_other_event_types_not_delivered(bus):
    tracker = Tracker()
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, tracker.on_learned)

    bus.publish(ProgressionEvent.SKILL_FORCED, node_key="guard")

    assert tracker.keys == []


def test_unsubscribe_bound_method(bus):
    tracker = Tracker()
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, tracker.on_learned)
    bus.unsubscribe(ProgressionEvent.SKILL_LEARNED, tracker.on_learned)

    bus.publish(ProgressionEvent.SKILL_LEARNED, node_key="guard")

    assert tracker.keys == []
    assert not bus.has_subscribers(ProgressionEvent.SKILL_LEARNED)


def test_dead_weak_handler_dropped(bus):
    tracker = Tracker()
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, tracker.on_learned)
    del tracker

    bus.publish(ProgressionEvent.SKILL_LEARNED, node_key="guard")

    assert not bus.has_subscribers(ProgressionEvent.SKILL_LEARNED)


def test_priority_then_subscription_order(bus):
    calls = []
    bus.subscribe(ProgressionEvent.TREE_RESET, lambda e: calls.append("ui"), weak=False)
    bus.subscribe(ProgressionEvent.TREE_RESET, lambda e: calls.append("audio"), weak=False)
    bus.subscribe(ProgressionEvent.TREE_RESET, lambda e: calls.append("save"), priority=3, weak=False)

    bus.publish(ProgressionEvent.TREE_RESET, refund=4)

    assert calls == ["save", "ui", "audio"]


def test_consumed_event_stops_propagation(bus):
    calls = []

    def veto(event):
        calls.append("veto")
        event.consume()

    bus.subscribe(ProgressionEvent.CLASS_CHANGED, veto, priority=1, weak=False)
    bus.subscribe(ProgressionEvent.CLASS_CHANGED, lambda e: calls.append("ui"), weak=False)

    event = bus.publish(ProgressionEvent.CLASS_CHANGED, new_class_id=2)

    assert calls == ["veto"]
    assert event.consumed


def test_one_shot_handler(bus):
    grants = []
    bus.subscribe(
        ProgressionEvent.POINTS_GAINED,
        lambda e: grants.append(e["points"]),
        one_shot=True,
        weak=False,
    )

    bus.publish(ProgressionEvent.POINTS_GAINED, points=2)
    bus.publish(ProgressionEvent.POINTS_GAINED, points=3)

    assert grants == [2]
    assert not bus.has_subscribers(ProgressionEvent.POINTS_GAINED)


def test_publish_during_dispatch_is_queued(bus):
    calls = []

    def on_learned(event):
        calls.append("learned:start")
        bus.publish(ProgressionEvent.SCRIPTED_EVENT, event_id=12)
        calls.append("learned:end")

    bus.subscribe(ProgressionEvent.SKILL_LEARNED, on_learned, weak=False)
    bus.subscribe(
        ProgressionEvent.SCRIPTED_EVENT,
        lambda e: calls.append(f"event:{e['event_id']}"),
        weak=False,
    )

    bus.publish(ProgressionEvent.SKILL_LEARNED, node_key="guard")

    assert calls == ["learned:start", "learned:end", "event:12"]


def test_handler_errors_logged_and_skipped(bus, caplog):
    calls = []

    def broken(event):
        raise KeyError("missing sound")

    bus.subscribe(ProgressionEvent.SKILL_LEARNED, broken, priority=1, weak=False)
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, lambda e: calls.append(e), weak=False)

    bus.publish(ProgressionEvent.SKILL_LEARNED)

    assert len(calls) == 1
    assert "Error in event handler" in caplog.text


def test_handler_errors_raised_when_requested():
    bus = EventBus(raise_errors=True)

    def broken(event):
        raise KeyError("missing sound")

    bus.subscribe(ProgressionEvent.SKILL_LEARNED, broken, weak=False)

    with pytest.raises(KeyError):
        bus.publish(ProgressionEvent.SKILL_LEARNED)


def test_clear(bus):
    bus.subscribe(ProgressionEvent.TREE_ATTACHED, lambda e: None, weak=False)
    bus.subscribe(ProgressionEvent.TREE_DETACHED, lambda e: None, weak=False)

    bus.clear(ProgressionEvent.TREE_ATTACHED)
    assert not bus.has_subscribers(ProgressionEvent.TREE_ATTACHED)
    assert bus.has_subscribers(ProgressionEvent.TREE_DETACHED)

    bus.clear()
    assert not bus.has_subscribers(ProgressionEvent.TREE_DETACHED)
