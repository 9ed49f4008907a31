"""Domain definition exports."""

from .condition_def import (
    CheckpointReachedCondition,
    ConditionDef,
    EventCompletedCondition,
    FlagCondition,
    PowerUnlockedCondition,
    UnknownCondition,
)
from .power_def import PowerDef
from .story_def import CheckpointDef, StoryChoiceDef, StoryEffectDef, StoryEventDef

__all__ = [
    "CheckpointDef",
    "CheckpointReachedCondition",
    "ConditionDef",
    "EventCompletedCondition",
    "FlagCondition",
    "PowerDef",
    "PowerUnlockedCondition",
    "StoryChoiceDef",
    "StoryEffectDef",
    "StoryEventDef",
    "UnknownCondition",
]
