"""Composition root wiring the story, power and persistence services."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from saga.config import EngineConfig
from saga.core.clock import Clock, SystemClock
from saga.data.errors import DataError
from saga.data.fallback import load_fallback_power_registry
from saga.data.paths import get_definitions_path
from saga.data.repositories import PowersRepository
from saga.data.save_store import FileSlotStore, SlotStore
from saga.domain.power_registry import PowerRegistry
from saga.domain.state import SessionState
from saga.services.autosave import AutoSaveQueue
from saga.services.persistence_service import PersistenceService
from saga.services.power_effects import PowerEffectRegistry, create_default_effect_registry
from saga.services.power_service import ActivationResult, PowerService
from saga.services.save_service import SaveService
from saga.services.story_service import StoryService, TriggerResult

logger = logging.getLogger(__name__)

START_EVENT_ID = "game_start"


@dataclass(slots=True)
class PowerUseResult:
    """Activation outcome plus the story event fired on first use, if any."""

    activation: ActivationResult
    first_use: TriggerResult | None = None

    @property
    def success(self) -> bool:
        return self.activation.success


def load_power_registry(definitions_dir: Path | None) -> PowerRegistry:
    """Load the power catalog, falling back to the embedded one on failure."""
    try:
        return PowerRegistry(PowersRepository(get_definitions_path(definitions_dir)).all())
    except DataError as exc:
        logger.error("Power data could not be loaded (%s); using fallback catalog", exc)
        return load_fallback_power_registry()


class GameSession:
    """Owns one play session's state and the services that operate on it."""

    def __init__(
        self,
        *,
        config: EngineConfig,
        state: SessionState,
        clock: Clock,
        story: StoryService,
        powers: PowerService,
        persistence: PersistenceService,
    ) -> None:
        self._config = config
        self._state = state
        self._clock = clock
        self.story = story
        self.powers = powers
        self.persistence = persistence
        self._started = False

    @classmethod
    def create(
        cls,
        config: EngineConfig | None = None,
        *,
        clock: Clock | None = None,
        store: SlotStore | None = None,
        registry: PowerRegistry | None = None,
        effects: PowerEffectRegistry | None = None,
    ) -> "GameSession":
        config = config or EngineConfig()
        clock = clock or SystemClock()
        if registry is None:
            registry = load_power_registry(config.definitions_dir)
        if store is None:
            store = FileSlotStore(config.resolved_save_dir())
        state = SessionState()
        queue = AutoSaveQueue(immediate=not config.deferred_autosave)

        powers = PowerService(registry, state, clock, effects=effects or create_default_effect_registry())
        story = StoryService(state, powers, autosave_queue=queue)
        persistence = PersistenceService(
            SaveService(registry),
            state,
            store,
            clock,
            manual_slot_count=config.manual_slot_count,
            auto_slot_count=config.auto_slot_count,
            autosave_enabled=config.autosave_enabled,
            quarantine_corrupt_saves=config.quarantine_corrupt_saves,
            autosave_queue=queue,
        )
        return cls(
            config=config,
            state=state,
            clock=clock,
            story=story,
            powers=powers,
            persistence=persistence,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def started(self) -> bool:
        return self._started

    def start(self, *, trigger_start_event: bool = True) -> TriggerResult | None:
        """Load story data and fire the opening event."""
        if self._config.definitions_dir is not None:
            source: Path | None = Path(self._config.definitions_dir) / "story.json"
        else:
            source = None
        self.story.load_story_data(source)
        self._started = True
        if not trigger_start_event:
            return None
        return self.story.trigger_story_event(START_EVENT_ID)

    def activate_power(self, power_id: str, context: Mapping[str, Any] | None = None) -> PowerUseResult:
        activation = self.powers.activate_power(power_id, context)
        result = PowerUseResult(activation=activation)
        if not activation.success or activation.toggled_off:
            return result
        power = self.powers.get_power(power_id)
        if power is not None and power.first_use_event:
            result.first_use = self.story.trigger_story_event(power.first_use_event)
        return result

    def tick(self) -> Dict[str, int]:
        """Run deferred autosaves and report remaining cooldown per unlocked power."""
        self.persistence.process_pending_autosaves()
        return {
            power.id: self.powers.get_remaining_cooldown(power.id)
            for power in self.powers.get_unlocked_power_list()
        }

    def reset_game(self, *, clear_saves: bool = True) -> None:
        self.story.reset_story()
        self.powers.reset_powers()
        self._state.checkpoints.clear()
        self.persistence.autosave_queue.clear()
        if clear_saves:
            removed = self.persistence.clear_saves()
            logger.info("Removed %d save(s) during reset", removed)
        logger.info("Game reset")

    def get_game_state(self) -> Dict[str, Any]:
        """Combined read-only view for presentation layers."""
        return {
            "story": self.story.get_story_state(),
            "progress": asdict(self.story.get_story_progress()),
            "powers": {
                power.id: {
                    "name": power.name,
                    "kind": power.kind,
                    "unlocked": self.powers.is_power_unlocked(power.id),
                    "available": self.powers.check_power_availability(power.id),
                    "active": self.powers.is_power_active(power.id),
                    "remaining_cooldown_ms": self.powers.get_remaining_cooldown(power.id),
                }
                for power in self.powers.get_power_list()
            },
            "persistence": asdict(self.persistence.get_status()),
            "now_ms": self._clock.now_ms(),
        }
