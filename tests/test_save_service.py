from typing import Any, Dict

import pytest

from saga.data.fallback import load_fallback_power_registry
from saga.domain.state import SessionState
from saga.services.errors import SaveLoadError, SchemaVersionMismatchError
from saga.services.save_service import SaveService


def _make_session() -> SessionState:
    registry = load_fallback_power_registry()
    state = SessionState(powers=registry.new_runtime_states())
    state.story.current_checkpoint = "tutorial_checkpoint"
    state.story.completed_events.update({"tutorial_start", "game_start"})
    state.story.flags.set("game_started", True)
    state.story.flags.set("path_chosen", "light")
    state.powers["telekinesis"].unlocked = True
    state.powers["telekinesis"].last_activated_at = 1_000
    return state


def _payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "schema_version": SaveService.SCHEMA_VERSION,
        "saved_at": 5_000,
        "metadata": {"key": "manual_save_0", "kind": "manual", "slot_index": 0, "sequence": 1},
        "story": {
            "current_checkpoint": "game_start",
            "completed_events": ["game_start"],
            "story_flags": {"game_started": True},
            "unlocked_powers": [],
        },
        "powers": {},
        "extra": None,
    }
    payload.update(overrides)
    return payload


def test_serialize_captures_story_and_powers() -> None:
    service = SaveService(load_fallback_power_registry())

    payload = service.serialize(
        _make_session(), metadata={"key": "manual_save_0"}, saved_at=42, extra={"position": [3, 4]}
    )

    assert payload["schema_version"] == SaveService.SCHEMA_VERSION
    assert payload["saved_at"] == 42
    assert payload["story"] == {
        "current_checkpoint": "tutorial_checkpoint",
        "completed_events": ["game_start", "tutorial_start"],
        "story_flags": {"game_started": True, "path_chosen": "light"},
        "unlocked_powers": ["telekinesis"],
    }
    assert payload["powers"]["telekinesis"] == {
        "unlocked": True,
        "last_activated_at": 1_000,
        "active_until": None,
        "toggled_on": False,
    }
    assert payload["extra"] == {"position": [3, 4]}


def test_serialized_payload_does_not_follow_later_mutation() -> None:
    service = SaveService(load_fallback_power_registry())
    session = _make_session()
    extra = {"position": [3, 4]}
    payload = service.serialize(session, metadata={"key": "k"}, saved_at=1, extra=extra)

    session.story.flags.set("game_started", False)
    session.story.completed_events.add("first_power_unlock")
    session.powers["telekinesis"].last_activated_at = 9_999
    extra["position"].append(5)

    assert payload["story"]["story_flags"]["game_started"] is True
    assert "first_power_unlock" not in payload["story"]["completed_events"]
    assert payload["powers"]["telekinesis"]["last_activated_at"] == 1_000
    assert payload["extra"] == {"position": [3, 4]}


def test_deserialize_restores_state() -> None:
    registry = load_fallback_power_registry()
    service = SaveService(registry)
    session = _make_session()
    payload = service.serialize(session, metadata={"key": "manual_save_0"}, saved_at=7, extra={"hp": 3})

    restored = service.deserialize(payload)

    assert restored.story.current_checkpoint == "tutorial_checkpoint"
    assert restored.story.completed_events == {"game_start", "tutorial_start"}
    assert restored.story.flags == session.story.flags
    assert restored.powers == session.powers
    assert restored.metadata["saved_at"] == 7
    assert restored.extra == {"hp": 3}


def test_deserialize_defaults_missing_powers_to_locked() -> None:
    restored = SaveService(load_fallback_power_registry()).deserialize(_payload())

    assert set(restored.powers) == {"telekinesis", "enhanced_vision", "time_slow", "phase_walk"}
    assert not any(runtime.unlocked for runtime in restored.powers.values())


def test_deserialize_applies_unlocked_powers_list() -> None:
    payload = _payload()
    payload["story"]["unlocked_powers"] = ["phase_walk"]

    restored = SaveService(load_fallback_power_registry()).deserialize(payload)

    assert restored.powers["phase_walk"].unlocked


def test_deserialize_rejects_schema_mismatch() -> None:
    with pytest.raises(SchemaVersionMismatchError):
        SaveService(load_fallback_power_registry()).deserialize(_payload(schema_version=99))


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        _payload(story="broken"),
        _payload(saved_at="yesterday"),
        _payload(metadata={"kind": "manual"}),
        _payload(powers={"levitation": {"unlocked": True}}),
        _payload(powers={"telekinesis": {"unlocked": "yes"}}),
        _payload(powers={"telekinesis": {"last_activated_at": True}}),
        _payload(powers={"time_slow": {"last_activated_at": 0, "active_until": 5_000}}),
        _payload(powers={"time_slow": {"active_until": 100}}),
    ],
)
def test_deserialize_rejects_invalid_payloads(payload: Any) -> None:
    with pytest.raises(SaveLoadError):
        SaveService(load_fallback_power_registry()).deserialize(payload)
