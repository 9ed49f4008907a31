"""Power catalog entries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from saga.core.types import PowerKind
from saga.domain.defs.condition_def import ConditionDef


@dataclass(frozen=True, slots=True)
class PowerDef:
    """Immutable description of a gated capability."""

    id: str
    name: str
    description: str = ""
    kind: PowerKind = "active"
    cooldown_ms: int = 0
    active_duration_ms: int = 0
    unlock_conditions: Tuple[ConditionDef, ...] = ()
    effect: str | None = None
    recheck_conditions: bool = False
    first_use_event: str | None = None
