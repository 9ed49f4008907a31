"""Power unlocking, availability and cooldown-gated activation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping

from saga.core.clock import Clock
from saga.core.types import ActivationFailure
from saga.domain.conditions import ConditionContext, evaluate_conditions
from saga.domain.defs import PowerDef
from saga.domain.power_registry import PowerRegistry
from saga.domain.state import PowerRuntimeState, SessionState
from saga.services.power_effects import PowerEffectContext, PowerEffectRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActivationResult:
    """Outcome of an activation attempt; failures carry a reason code."""

    power_id: str
    success: bool
    reason: ActivationFailure | None = None
    remaining_ms: int = 0
    active_until: int | None = None
    toggled_off: bool = False
    effect_error: str | None = None


class PowerService:
    """Drives the Locked -> Ready -> Active/Cooldown -> Ready cycle per power."""

    def __init__(
        self,
        registry: PowerRegistry,
        session: SessionState,
        clock: Clock,
        *,
        effects: PowerEffectRegistry | None = None,
    ) -> None:
        self._registry = registry
        self._session = session
        self._clock = clock
        self._effects = effects or PowerEffectRegistry()
        for power_id in registry.ids():
            session.powers.setdefault(power_id, PowerRuntimeState())

    @property
    def registry(self) -> PowerRegistry:
        return self._registry

    def get_power_list(self) -> List[PowerDef]:
        return self._registry.all()

    def get_unlocked_power_list(self) -> List[PowerDef]:
        return [power for power in self._registry.all() if self._runtime(power.id).unlocked]

    def get_power(self, power_id: str) -> PowerDef | None:
        return self._registry.get(power_id)

    def get_power_state(self, power_id: str) -> PowerRuntimeState | None:
        if power_id not in self._registry:
            return None
        return self._runtime(power_id).copy()

    def is_power_unlocked(self, power_id: str) -> bool:
        return self._session.is_power_unlocked(power_id)

    def unlock_power(self, power_id: str, source: str | None = None) -> bool:
        """Unlock a power; returns True only when this call changed state."""
        if power_id not in self._registry:
            logger.warning("Cannot unlock unknown power '%s'", power_id)
            return False
        runtime = self._runtime(power_id)
        if runtime.unlocked:
            logger.debug("Power '%s' already unlocked", power_id)
            return False
        runtime.unlocked = True
        self._registry.record_unlock_source(power_id, source)
        logger.info("Power unlocked: %s (source: %s)", power_id, source or "unknown")
        return True

    def refresh_unlocks(self, context: ConditionContext | None = None) -> List[str]:
        """Unlock every locked power whose declared conditions now hold."""
        context = context or self._session
        unlocked: List[str] = []
        for power in self._registry.all():
            if not power.unlock_conditions or self._runtime(power.id).unlocked:
                continue
            if evaluate_conditions(power.unlock_conditions, context) and self.unlock_power(
                power.id, "conditions"
            ):
                unlocked.append(power.id)
        return unlocked

    def get_remaining_cooldown(self, power_id: str) -> int:
        power = self._registry.get(power_id)
        if power is None:
            return 0
        last = self._runtime(power_id).last_activated_at
        if last is None or power.cooldown_ms <= 0:
            return 0
        elapsed = self._clock.now_ms() - last
        return min(power.cooldown_ms, max(0, power.cooldown_ms - elapsed))

    def is_power_active(self, power_id: str) -> bool:
        power = self._registry.get(power_id)
        if power is None:
            return False
        runtime = self._runtime(power_id)
        if power.kind == "toggle":
            return runtime.toggled_on
        return runtime.active_until is not None and runtime.active_until > self._clock.now_ms()

    def check_power_availability(self, power_id: str) -> bool:
        return self._availability_failure(power_id) is None

    def activate_power(self, power_id: str, context: Mapping[str, Any] | None = None) -> ActivationResult:
        power = self._registry.get(power_id)
        if power is not None and power.kind == "toggle":
            runtime = self._runtime(power_id)
            # switching off ignores the cooldown and recheck gates
            if runtime.unlocked and runtime.toggled_on:
                runtime.toggled_on = False
                logger.info("Power toggled off: %s", power_id)
                return ActivationResult(power_id=power_id, success=True, toggled_off=True)

        failure = self._availability_failure(power_id)
        if failure is not None:
            remaining = self.get_remaining_cooldown(power_id) if failure == "cooldown" else 0
            logger.info("Power '%s' not available (%s)", power_id, failure)
            return ActivationResult(power_id=power_id, success=False, reason=failure, remaining_ms=remaining)

        assert power is not None
        runtime = self._runtime(power_id)
        now = self._clock.now_ms()
        runtime.last_activated_at = now
        runtime.active_until = now + power.active_duration_ms if power.active_duration_ms > 0 else None
        if power.kind == "toggle":
            runtime.toggled_on = True

        result = ActivationResult(power_id=power_id, success=True, active_until=runtime.active_until)
        result.effect_error = self._run_effect(power, runtime, context)
        logger.info("Power activated: %s", power_id)
        return result

    def deactivate_power(self, power_id: str) -> bool:
        """End an active window early or switch a toggle off."""
        power = self._registry.get(power_id)
        if power is None:
            return False
        runtime = self._runtime(power_id)
        if power.kind == "toggle":
            changed, runtime.toggled_on = runtime.toggled_on, False
            return changed
        now = self._clock.now_ms()
        if runtime.active_until is None or runtime.active_until <= now:
            return False
        runtime.active_until = now
        logger.info("Power deactivated: %s", power_id)
        return True

    def reset_powers(self) -> None:
        self._session.powers = self._registry.new_runtime_states()
        self._registry.clear_unlock_sources()
        logger.info("Power state reset")

    def _availability_failure(self, power_id: str) -> ActivationFailure | None:
        power = self._registry.get(power_id)
        if power is None:
            return "unknown"
        if not self._runtime(power_id).unlocked:
            return "locked"
        if self.get_remaining_cooldown(power_id) > 0:
            return "cooldown"
        if power.recheck_conditions and not evaluate_conditions(power.unlock_conditions, self._session):
            return "unavailable"
        return None

    def _run_effect(
        self,
        power: PowerDef,
        runtime: PowerRuntimeState,
        context: Mapping[str, Any] | None,
    ) -> str | None:
        if not power.effect:
            return None
        hook = self._effects.get(power.effect)
        if hook is None:
            logger.warning("No effect hook registered for '%s' (power '%s')", power.effect, power.id)
            return None
        assert runtime.last_activated_at is not None
        effect_context = PowerEffectContext(
            power_id=power.id,
            effect=power.effect,
            activated_at=runtime.last_activated_at,
            active_until=runtime.active_until,
            data=dict(context or {}),
        )
        try:
            hook(effect_context)
        except Exception as exc:
            logger.exception("Effect hook '%s' failed for power '%s'", power.effect, power.id)
            return str(exc) or exc.__class__.__name__
        return None

    def _runtime(self, power_id: str) -> PowerRuntimeState:
        return self._session.powers.setdefault(power_id, PowerRuntimeState())
