"""Fail-closed evaluation of condition lists."""
from __future__ import annotations

import logging
from typing import Iterable, Protocol

from saga.domain.defs import (
    CheckpointReachedCondition,
    ConditionDef,
    EventCompletedCondition,
    FlagCondition,
    PowerUnlockedCondition,
    UnknownCondition,
)

logger = logging.getLogger(__name__)


class ConditionContext(Protocol):
    """Read-only view of session state that conditions are tested against."""

    def flag_matches(self, name: str, expected: object) -> bool:
        ...

    def is_power_unlocked(self, power_id: str) -> bool:
        ...

    def is_event_completed(self, event_id: str) -> bool:
        ...

    def has_reached_checkpoint(self, checkpoint_id: str) -> bool:
        ...


def flag_values_equal(actual: object, expected: object) -> bool:
    """Equality that keeps booleans distinct from the integers 0 and 1."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    return actual == expected


def evaluate_condition(condition: ConditionDef, context: ConditionContext) -> bool:
    if isinstance(condition, FlagCondition):
        return context.flag_matches(condition.name, condition.expected)
    if isinstance(condition, PowerUnlockedCondition):
        return context.is_power_unlocked(condition.power_id)
    if isinstance(condition, EventCompletedCondition):
        return context.is_event_completed(condition.event_id)
    if isinstance(condition, CheckpointReachedCondition):
        return context.has_reached_checkpoint(condition.checkpoint_id)
    if isinstance(condition, UnknownCondition):
        logger.warning("Unknown condition kind '%s' treated as unsatisfied", condition.kind)
        return False
    logger.warning("Unsupported condition object %r treated as unsatisfied", condition)
    return False


def evaluate_conditions(conditions: Iterable[ConditionDef], context: ConditionContext) -> bool:
    """Return True when every condition holds; an empty list always holds."""
    return all(evaluate_condition(condition, context) for condition in conditions)
