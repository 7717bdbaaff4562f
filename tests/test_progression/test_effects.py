import pytest
from unittest.mock import MagicMock
from skilltrees.components import Character, GameState
from skilltrees.core.events import EventBus
from skilltrees.progression import (
    SkillTree,
    PointLedger,
    ProgressionContext,
    ProgressionEvent,
    EventBusInterpreter,
    ConfigurationError,
    ProtocolError,
    variable_add,
    run_event,
)


@pytest.fixture
def actor():
    return Character(actor_id=1)


@pytest.fixture
def tree():
    return SkillTree("Test", "test_tree", [])


def test_variable_effect_increments(actor, tree):
    state = GameState(variables={8: 4})
    ctx = ProgressionContext(ledger=PointLedger(), game_state=state)

    variable_add(8).apply(actor, tree, ctx)
    variable_add(8, -3).apply(actor, tree, ctx)
    variable_add(9, 2).apply(actor, tree, ctx)

    assert state.variable(8) == 2
    assert state.variable(9) == 2


def test_event_effect_calls_interpreter(actor, tree):
    interpreter = MagicMock()
    ctx = ProgressionContext(ledger=PointLedger(), interpreter=interpreter)

    run_event(12).apply(actor, tree, ctx)

    interpreter.run_event.assert_called_once_with(12)


def test_event_effect_errors_propagate(actor, tree):
    interpreter = MagicMock()
    interpreter.run_event.side_effect = RuntimeError("event crashed")
    ctx = ProgressionContext(ledger=PointLedger(), interpreter=interpreter)

    with pytest.raises(RuntimeError):
        run_event(12).apply(actor, tree, ctx)


def test_event_effect_without_interpreter(actor, tree):
    ctx = ProgressionContext(ledger=PointLedger())
    with pytest.raises(ProtocolError):
        run_event(1).apply(actor, tree, ctx)


def test_event_bus_interpreter_publishes(actor, tree):
    bus = EventBus()
    fired = []
    bus.subscribe(ProgressionEvent.SCRIPTED_EVENT, lambda e: fired.append(e["event_id"]), weak=False)
    ctx = ProgressionContext(ledger=PointLedger(), interpreter=EventBusInterpreter(bus))

    run_event(5).apply(actor, tree, ctx)

    assert fired == [5]


def test_invalid_effects():
    with pytest.raises(ConfigurationError):
        variable_add(0)
    with pytest.raises(ConfigurationError):
        run_event(-1)
