"""Condition variants shared by story guards, choices and power unlocks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Union


@dataclass(frozen=True, slots=True)
class FlagCondition:
    """Holds when the named flag equals ``expected``."""

    name: str
    expected: object = True


@dataclass(frozen=True, slots=True)
class PowerUnlockedCondition:
    power_id: str


@dataclass(frozen=True, slots=True)
class EventCompletedCondition:
    event_id: str


@dataclass(frozen=True, slots=True)
class CheckpointReachedCondition:
    checkpoint_id: str


@dataclass(frozen=True, slots=True)
class UnknownCondition:
    """Unrecognized condition kind kept verbatim; never satisfied."""

    kind: str
    raw: Dict[str, object] = field(default_factory=dict, compare=False, hash=False)


ConditionDef = Union[
    FlagCondition,
    PowerUnlockedCondition,
    EventCompletedCondition,
    CheckpointReachedCondition,
    UnknownCondition,
]
