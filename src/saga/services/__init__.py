"""Service layer exports."""

from .autosave import AutoSaveQueue
from .errors import SaveLoadError, SchemaVersionMismatchError
from .persistence_service import LoadResult, PersistenceService, PersistenceStatus, SaveResult, SaveSlotMeta
from .power_effects import PowerEffectContext, PowerEffectRegistry, create_default_effect_registry
from .power_service import ActivationResult, PowerService
from .save_service import RestoredState, SaveService
from .story_service import (
    CheckpointReachedEvent,
    ChoiceOutcome,
    ChoiceView,
    FlagChangedEvent,
    PowerUnlockedEvent,
    StoryNotification,
    StoryProgressView,
    StoryService,
    TriggerResult,
)
from .session import GameSession, PowerUseResult

__all__ = [
    "ActivationResult",
    "AutoSaveQueue",
    "CheckpointReachedEvent",
    "ChoiceOutcome",
    "ChoiceView",
    "FlagChangedEvent",
    "GameSession",
    "LoadResult",
    "PersistenceService",
    "PersistenceStatus",
    "PowerEffectContext",
    "PowerEffectRegistry",
    "PowerService",
    "PowerUnlockedEvent",
    "PowerUseResult",
    "RestoredState",
    "SaveLoadError",
    "SaveResult",
    "SaveService",
    "SaveSlotMeta",
    "SchemaVersionMismatchError",
    "StoryNotification",
    "StoryProgressView",
    "StoryService",
    "TriggerResult",
    "create_default_effect_registry",
]
