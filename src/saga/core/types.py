"""Shared type aliases for the core and domain layers."""
from typing import Literal

StoryEventType = Literal["dialogue", "flag-effect", "unlock", "branch"]
PowerKind = Literal["active", "toggle"]
SaveKind = Literal["manual", "auto"]

TriggerStatus = Literal["triggered", "branch", "not_found", "conditions_unmet", "already_completed"]
ChoiceStatus = Literal["chosen", "not_found", "not_branch", "invalid_choice", "conditions_unmet"]
ActivationFailure = Literal["unknown", "locked", "cooldown", "unavailable"]
PersistenceFailure = Literal[
    "invalid_slot",
    "not_found",
    "corrupt",
    "version_mismatch",
    "write_failed",
    "busy",
    "disabled",
]

STORY_EVENT_TYPES: tuple[StoryEventType, ...] = ("dialogue", "flag-effect", "unlock", "branch")
POWER_KINDS: tuple[PowerKind, ...] = ("active", "toggle")

__all__ = [
    "ActivationFailure",
    "ChoiceStatus",
    "POWER_KINDS",
    "PersistenceFailure",
    "PowerKind",
    "STORY_EVENT_TYPES",
    "SaveKind",
    "StoryEventType",
    "TriggerStatus",
]
