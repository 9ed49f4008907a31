"""Story definition structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from saga.core.types import StoryEventType
from saga.domain.defs.condition_def import ConditionDef


@dataclass(frozen=True, slots=True)
class StoryEffectDef:
    """Single effect entry attached to an event or choice."""

    type: str
    data: Dict[str, object] = field(default_factory=dict, hash=False)


@dataclass(frozen=True, slots=True)
class StoryChoiceDef:
    """Represents a selectable choice on a branch event."""

    text: str
    next_event_id: str | None = None
    effects: Tuple[StoryEffectDef, ...] = ()
    conditions: Tuple[ConditionDef, ...] = ()


@dataclass(frozen=True, slots=True)
class StoryEventDef:
    """Fully parsed story event."""

    id: str
    type: StoryEventType
    text: str = ""
    speaker: str | None = None
    conditions: Tuple[ConditionDef, ...] = ()
    effects: Tuple[StoryEffectDef, ...] = ()
    choices: Tuple[StoryChoiceDef, ...] = ()
    next_event_id: str | None = None
    one_shot: bool = False

    @property
    def is_branch(self) -> bool:
        return bool(self.choices)


@dataclass(frozen=True, slots=True)
class CheckpointDef:
    id: str
    name: str
    description: str = ""
