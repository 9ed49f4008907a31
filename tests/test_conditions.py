import logging

from saga.domain.checkpoint_tracker import CheckpointTracker
from saga.domain.conditions import evaluate_condition, evaluate_conditions, flag_values_equal
from saga.domain.defs import (
    CheckpointReachedCondition,
    EventCompletedCondition,
    FlagCondition,
    PowerUnlockedCondition,
    UnknownCondition,
)
from saga.domain.flag_store import FlagStore
from saga.domain.state import PowerRuntimeState, SessionState


def _session() -> SessionState:
    state = SessionState(powers={"telekinesis": PowerRuntimeState(unlocked=True), "phase_walk": PowerRuntimeState()})
    state.story.flags.set("door_open", True)
    state.story.flags.set("path", "dark")
    state.story.completed_events.add("game_start")
    state.story.current_checkpoint = "tutorial_checkpoint"
    return state


def test_flag_store_set_returns_previous_value() -> None:
    flags = FlagStore()

    assert flags.set("seen", True) is None
    assert flags.set("seen", False) is True
    assert flags.get("seen") is False


def test_flag_store_check_is_equality_and_unset_is_false() -> None:
    flags = FlagStore({"count": 2})

    assert flags.check("count", 2)
    assert not flags.check("count", 3)
    assert not flags.check("missing", None)
    assert not flags.check("missing", False)


def test_flag_values_keep_booleans_apart_from_integers() -> None:
    assert flag_values_equal(True, True)
    assert not flag_values_equal(True, 1)
    assert not flag_values_equal(0, False)
    assert flag_values_equal("dark", "dark")


def test_empty_condition_list_is_satisfied() -> None:
    assert evaluate_conditions([], SessionState())


def test_each_condition_kind_reads_session_state() -> None:
    state = _session()

    assert evaluate_condition(FlagCondition("door_open", True), state)
    assert evaluate_condition(FlagCondition("path", "dark"), state)
    assert evaluate_condition(PowerUnlockedCondition("telekinesis"), state)
    assert not evaluate_condition(PowerUnlockedCondition("phase_walk"), state)
    assert not evaluate_condition(PowerUnlockedCondition("unknown_power"), state)
    assert evaluate_condition(EventCompletedCondition("game_start"), state)
    assert evaluate_condition(CheckpointReachedCondition("tutorial_checkpoint"), state)


def test_checkpoint_condition_only_matches_current_checkpoint() -> None:
    state = _session()
    state.story.current_checkpoint = "crossroads"

    assert not evaluate_condition(CheckpointReachedCondition("tutorial_checkpoint"), state)


def test_unknown_condition_fails_closed_with_warning(caplog) -> None:
    state = _session()

    with caplog.at_level(logging.WARNING):
        result = evaluate_conditions([FlagCondition("door_open"), UnknownCondition("moon_phase")], state)

    assert result is False
    assert "moon_phase" in caplog.text


def test_checkpoint_tracker_claims_each_checkpoint_once() -> None:
    tracker = CheckpointTracker()

    assert tracker.claim_autosave("tutorial_checkpoint")
    assert not tracker.claim_autosave("tutorial_checkpoint")
    assert tracker.has_autosaved("tutorial_checkpoint")
    tracker.clear()
    assert tracker.claim_autosave("tutorial_checkpoint")
