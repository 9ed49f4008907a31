"""Named effect hooks invoked when a power activates."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PowerEffectContext:
    """Everything a hook gets to see about one activation."""

    power_id: str
    effect: str
    activated_at: int
    active_until: int | None
    data: Mapping[str, Any] = field(default_factory=dict)


EffectHook = Callable[[PowerEffectContext], Any]


class PowerEffectRegistry:
    """Maps effect names from the power catalog to callables."""

    def __init__(self) -> None:
        self._hooks: Dict[str, EffectHook] = {}

    def register(self, effect: str, hook: EffectHook, *, replace: bool = False) -> None:
        if not effect or not isinstance(effect, str):
            raise ValueError("effect must be a non-empty string")
        if effect in self._hooks and not replace:
            return
        self._hooks[effect] = hook

    def get(self, effect: str) -> EffectHook | None:
        return self._hooks.get(effect)

    def names(self) -> list[str]:
        return sorted(self._hooks)


def _log_effect(ctx: PowerEffectContext) -> None:
    logger.info("Power effect '%s' applied for '%s'", ctx.effect, ctx.power_id)


def create_default_effect_registry() -> PowerEffectRegistry:
    """Registry whose hooks only log; rendering layers register real ones."""
    registry = PowerEffectRegistry()
    for effect in ("move_object", "reveal_hidden", "time_manipulation", "phase_through"):
        registry.register(effect, _log_effect)
    return registry
