from typing import List

from saga.core.clock import ManualClock
from saga.data.fallback import load_fallback_power_registry
from saga.domain.defs import FlagCondition, PowerDef
from saga.domain.power_registry import PowerRegistry
from saga.domain.state import SessionState
from saga.services.power_effects import PowerEffectContext, PowerEffectRegistry, create_default_effect_registry
from saga.services.power_service import PowerService


def _make_power_service(
    registry: PowerRegistry | None = None,
    effects: PowerEffectRegistry | None = None,
) -> tuple[PowerService, SessionState, ManualClock]:
    state = SessionState()
    clock = ManualClock(10_000)
    service = PowerService(
        registry or load_fallback_power_registry(),
        state,
        clock,
        effects=effects or create_default_effect_registry(),
    )
    return service, state, clock


def test_power_list_keeps_catalog_order() -> None:
    service, _, _ = _make_power_service()

    assert [power.id for power in service.get_power_list()] == [
        "telekinesis",
        "enhanced_vision",
        "time_slow",
        "phase_walk",
    ]
    assert service.get_unlocked_power_list() == []


def test_locked_power_cannot_activate() -> None:
    service, _, _ = _make_power_service()

    result = service.activate_power("telekinesis", {"test": True})

    assert not result.success
    assert result.reason == "locked"
    assert service.get_power_state("telekinesis").last_activated_at is None


def test_unknown_power_is_reported() -> None:
    service, _, _ = _make_power_service()

    assert service.activate_power("levitation").reason == "unknown"
    assert not service.check_power_availability("levitation")
    assert service.get_remaining_cooldown("levitation") == 0
    assert service.get_power_state("levitation") is None


def test_cooldown_cycle() -> None:
    service, _, clock = _make_power_service()
    service.unlock_power("telekinesis", "test_trigger")
    assert service.check_power_availability("telekinesis")

    first = service.activate_power("telekinesis", {"test": True})
    second = service.activate_power("telekinesis", {"test": True})

    assert first.success
    assert service.get_power_state("telekinesis").last_activated_at == 10_000
    assert not second.success
    assert second.reason == "cooldown"
    assert second.remaining_ms == 3000
    clock.advance(2999)
    assert service.get_remaining_cooldown("telekinesis") == 1
    assert not service.check_power_availability("telekinesis")
    clock.advance(1)
    assert service.get_remaining_cooldown("telekinesis") == 0
    assert service.activate_power("telekinesis").success


def test_remaining_cooldown_never_exceeds_cooldown() -> None:
    service, state, clock = _make_power_service()
    service.unlock_power("telekinesis")
    service.activate_power("telekinesis")
    clock.set(5_000)

    assert service.get_remaining_cooldown("telekinesis") == 3000
    assert state.powers["telekinesis"].last_activated_at == 10_000


def test_active_window_then_cooldown() -> None:
    service, _, clock = _make_power_service()
    service.unlock_power("time_slow")

    result = service.activate_power("time_slow")

    assert result.active_until == 13_000
    assert service.is_power_active("time_slow")
    clock.advance(3000)
    assert not service.is_power_active("time_slow")
    assert service.get_remaining_cooldown("time_slow") == 7000


def test_deactivate_ends_active_window() -> None:
    service, _, clock = _make_power_service()
    service.unlock_power("phase_walk")
    service.activate_power("phase_walk")
    clock.advance(500)

    assert service.deactivate_power("phase_walk")
    assert not service.is_power_active("phase_walk")
    assert not service.deactivate_power("phase_walk")
    assert service.get_remaining_cooldown("phase_walk") == 7500


def test_toggle_power_switches_on_and_off() -> None:
    service, _, _ = _make_power_service()
    service.unlock_power("enhanced_vision")

    on = service.activate_power("enhanced_vision")
    off = service.activate_power("enhanced_vision")

    assert on.success and not on.toggled_off
    assert off.success and off.toggled_off
    assert not service.is_power_active("enhanced_vision")
    service.activate_power("enhanced_vision")
    assert service.is_power_active("enhanced_vision")
    assert service.deactivate_power("enhanced_vision")
    assert not service.get_power_state("enhanced_vision").toggled_on


def test_effect_hook_receives_context() -> None:
    seen: List[PowerEffectContext] = []
    effects = PowerEffectRegistry()
    effects.register("move_object", seen.append)
    service, _, _ = _make_power_service(effects=effects)
    service.unlock_power("telekinesis")

    service.activate_power("telekinesis", {"target": "pot"})

    assert len(seen) == 1
    assert seen[0].power_id == "telekinesis"
    assert seen[0].activated_at == 10_000
    assert seen[0].data == {"target": "pot"}


def test_failing_hook_still_counts_activation() -> None:
    def _explode(_: PowerEffectContext) -> None:
        raise RuntimeError("boom")

    effects = PowerEffectRegistry()
    effects.register("move_object", _explode)
    service, _, _ = _make_power_service(effects=effects)
    service.unlock_power("telekinesis")

    result = service.activate_power("telekinesis")

    assert result.success
    assert result.effect_error == "boom"
    assert service.get_remaining_cooldown("telekinesis") == 3000


def test_recheck_conditions_make_power_unavailable() -> None:
    registry = PowerRegistry(
        [
            PowerDef(
                id="shadow_step",
                name="Shadow Step",
                unlock_conditions=(FlagCondition("in_shadow", True),),
                recheck_conditions=True,
            )
        ]
    )
    service, state, _ = _make_power_service(registry=registry)
    service.unlock_power("shadow_step", "test")

    assert service.activate_power("shadow_step").reason == "unavailable"
    state.story.flags.set("in_shadow", True)
    assert service.activate_power("shadow_step").success


def test_refresh_unlocks_uses_declared_conditions() -> None:
    service, state, _ = _make_power_service()
    state.story.flags.set("time_power_unlocked", True)

    assert service.refresh_unlocks() == ["time_slow"]
    assert service.refresh_unlocks() == []
    assert service.registry.unlock_source("time_slow") == "conditions"


def test_power_state_is_a_copy() -> None:
    service, _, _ = _make_power_service()
    snapshot = service.get_power_state("telekinesis")
    snapshot.unlocked = True

    assert not service.is_power_unlocked("telekinesis")


def test_reset_powers_locks_everything() -> None:
    service, _, _ = _make_power_service()
    service.unlock_power("telekinesis")
    service.activate_power("telekinesis")

    service.reset_powers()

    assert service.get_unlocked_power_list() == []
    assert service.get_remaining_cooldown("telekinesis") == 0


def test_toggle_with_cooldown_can_switch_off_immediately() -> None:
    registry = PowerRegistry([PowerDef(id="ward", name="Ward", kind="toggle", cooldown_ms=4000)])
    service, _, clock = _make_power_service(registry=registry)
    service.unlock_power("ward", "test")

    assert service.activate_power("ward").success
    clock.advance(100)
    off = service.activate_power("ward")
    again = service.activate_power("ward")

    assert off.success and off.toggled_off
    assert not service.is_power_active("ward")
    assert again.reason == "cooldown"
    assert again.remaining_ms == 3900
