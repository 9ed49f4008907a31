"""Parses raw condition entries into condition variants."""
from __future__ import annotations

from typing import List, Tuple

from saga.data.errors import DataValidationError
from saga.domain.defs import (
    CheckpointReachedCondition,
    ConditionDef,
    EventCompletedCondition,
    FlagCondition,
    PowerUnlockedCondition,
    UnknownCondition,
)


def _normalize_kind(value: object) -> str:
    return value.strip().lower().replace("-", "_") if isinstance(value, str) else ""


def _pick(entry: dict, *keys: str) -> object:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def _require_id(entry: dict, context: str, *keys: str) -> str:
    value = _pick(entry, *keys)
    if not isinstance(value, str) or not value:
        raise DataValidationError(f"{context} requires a string '{keys[0]}'.")
    return value


def parse_condition(raw: object, context: str) -> ConditionDef:
    """Parse one condition; unknown kinds become UnknownCondition."""
    if not isinstance(raw, dict):
        raise DataValidationError(f"{context} must be an object/dict.")
    raw_kind = _pick(raw, "kind", "type")
    kind = _normalize_kind(raw_kind)
    if kind == "flag":
        expected = _pick(raw, "expected", "value")
        return FlagCondition(
            name=_require_id(raw, context, "name", "flag"),
            expected=True if expected is None else expected,
        )
    if kind == "power_unlocked":
        return PowerUnlockedCondition(power_id=_require_id(raw, context, "power_id", "powerId"))
    if kind == "event_completed":
        return EventCompletedCondition(event_id=_require_id(raw, context, "event_id", "eventId"))
    if kind == "checkpoint_reached":
        return CheckpointReachedCondition(
            checkpoint_id=_require_id(raw, context, "checkpoint_id", "checkpointId")
        )
    return UnknownCondition(kind=str(raw_kind), raw=dict(raw))


def parse_conditions(raw: object, context: str) -> Tuple[ConditionDef, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DataValidationError(f"{context} must be a list if provided.")
    parsed: List[ConditionDef] = []
    for index, entry in enumerate(raw):
        parsed.append(parse_condition(entry, f"{context}[{index}]"))
    return tuple(parsed)
