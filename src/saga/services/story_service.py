"""Story progression services."""
from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ContextManager, Dict, Iterable, List, Mapping, Sequence, Union

from saga.core.types import ChoiceStatus, TriggerStatus
from saga.data.errors import DataError
from saga.data.fallback import load_fallback_story_graph
from saga.data.repositories import StoryRepository
from saga.data.repositories.condition_parser import parse_condition
from saga.domain.conditions import evaluate_conditions
from saga.domain.defs import CheckpointDef, ConditionDef, StoryChoiceDef, StoryEffectDef, StoryEventDef
from saga.domain.state import SessionState, StoryState
from saga.domain.story_graph import StoryGraph
from saga.services.autosave import AutoSaveQueue
from saga.services.power_service import PowerService

logger = logging.getLogger(__name__)

StorySource = Union[Path, str, Mapping[str, Any], StoryGraph, None]


@dataclass(slots=True)
class StoryNotification:
    """Base class for state changes reported back to the caller."""


@dataclass(slots=True)
class FlagChangedEvent(StoryNotification):
    flag: str
    value: object
    old_value: object | None


@dataclass(slots=True)
class PowerUnlockedEvent(StoryNotification):
    power_id: str
    source: str | None


@dataclass(slots=True)
class CheckpointReachedEvent(StoryNotification):
    checkpoint_id: str
    autosave_requested: bool


@dataclass(slots=True)
class ChoiceView:
    """A choice the player can currently pick."""

    index: int
    text: str
    next_event_id: str | None


@dataclass(slots=True)
class TriggerResult:
    """Result returned after triggering an event."""

    event_id: str
    status: TriggerStatus
    event: StoryEventDef | None = None
    choices: List[ChoiceView] = field(default_factory=list)
    notifications: List[StoryNotification] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status != "not_found"

    @property
    def triggered(self) -> bool:
        return self.status == "triggered"

    @property
    def next_event_id(self) -> str | None:
        return self.event.next_event_id if self.event is not None and self.triggered else None


@dataclass(slots=True)
class ChoiceOutcome:
    """Result returned after applying a branch choice."""

    event_id: str
    choice_index: int
    status: ChoiceStatus
    choice: StoryChoiceDef | None = None
    notifications: List[StoryNotification] = field(default_factory=list)
    next_result: TriggerResult | None = None


@dataclass(slots=True)
class StoryProgressView:
    current_checkpoint: str | None
    completed_events: int
    total_events: int
    progress_percentage: float
    unlocked_powers: int


class StoryService:
    """Application service that drives the story graph."""

    def __init__(
        self,
        session: SessionState,
        power_service: PowerService,
        *,
        graph: StoryGraph | None = None,
        autosave_queue: AutoSaveQueue | None = None,
    ) -> None:
        self._session = session
        self._powers = power_service
        self._autosave_queue = autosave_queue
        self._graph = graph if graph is not None else load_fallback_story_graph()
        self._seed_initial_state()

    @property
    def graph(self) -> StoryGraph:
        return self._graph

    @property
    def state(self) -> StoryState:
        return self._session.story

    def load_story_data(self, source: StorySource) -> bool:
        """Install a story graph; falls back to the embedded dataset on failure.

        Returns True when ``source`` itself was used.
        """
        try:
            graph = self._read_graph(source)
        except DataError as exc:
            logger.error("Story data could not be loaded (%s); using fallback dataset", exc)
            self._graph = load_fallback_story_graph()
            self._seed_initial_state()
            return False
        self._graph = graph
        self._seed_initial_state()
        logger.info("Story data loaded: %d events, %d checkpoints", len(graph), len(graph.checkpoints()))
        return True

    def trigger_story_event(self, event_id: str) -> TriggerResult:
        event = self._graph.get(event_id)
        if event is None:
            logger.warning("Story event not found: %s", event_id)
            return TriggerResult(event_id=event_id, status="not_found")
        if event.one_shot and event_id in self.state.completed_events:
            logger.debug("One-shot event '%s' already completed", event_id)
            return TriggerResult(event_id=event_id, status="already_completed", event=event)
        if not evaluate_conditions(event.conditions, self._session):
            logger.info("Story event conditions not met: %s", event_id)
            return TriggerResult(event_id=event_id, status="conditions_unmet", event=event)
        if event.is_branch:
            return TriggerResult(
                event_id=event_id,
                status="branch",
                event=event,
                choices=self._available_choices(event),
            )

        with self._hold_autosaves():
            notifications = self._apply_effects(event.effects, source=event_id)
            self.state.completed_events.add(event_id)
            notifications.extend(self._refresh_power_unlocks())
        logger.info("Story event triggered: %s", event_id)
        return TriggerResult(event_id=event_id, status="triggered", event=event, notifications=notifications)

    def choose(self, event_id: str, choice_index: int) -> ChoiceOutcome:
        """Apply the selected choice of a branch event and follow its edge."""
        event = self._graph.get(event_id)
        if event is None:
            logger.warning("Story event not found: %s", event_id)
            return ChoiceOutcome(event_id=event_id, choice_index=choice_index, status="not_found")
        if not event.is_branch:
            return ChoiceOutcome(event_id=event_id, choice_index=choice_index, status="not_branch")
        if not 0 <= choice_index < len(event.choices):
            logger.warning("Choice index %s is invalid for event '%s'", choice_index, event_id)
            return ChoiceOutcome(event_id=event_id, choice_index=choice_index, status="invalid_choice")
        choice = event.choices[choice_index]
        if not evaluate_conditions(event.conditions, self._session) or not evaluate_conditions(
            choice.conditions, self._session
        ):
            return ChoiceOutcome(
                event_id=event_id, choice_index=choice_index, status="conditions_unmet", choice=choice
            )

        with self._hold_autosaves():
            notifications = self._apply_effects(choice.effects, source=f"{event_id}[{choice_index}]")
            self.state.completed_events.add(event_id)
            notifications.extend(self._refresh_power_unlocks())
        outcome = ChoiceOutcome(
            event_id=event_id,
            choice_index=choice_index,
            status="chosen",
            choice=choice,
            notifications=notifications,
        )
        if choice.next_event_id:
            outcome.next_result = self.trigger_story_event(choice.next_event_id)
        return outcome

    def get_available_choices(self, event_id: str) -> List[ChoiceView]:
        event = self._graph.get(event_id)
        if event is None:
            return []
        return self._available_choices(event)

    def set_story_flag(self, name: str, value: object) -> FlagChangedEvent:
        old_value = self.state.flags.set(name, value)
        logger.debug("Story flag set: %s = %r (was: %r)", name, value, old_value)
        return FlagChangedEvent(flag=name, value=value, old_value=old_value)

    def get_story_flag(self, name: str) -> object | None:
        return self.state.flags.get(name)

    def check_story_flag(self, name: str, expected: object) -> bool:
        return self.state.flags.check(name, expected)

    def check_story_conditions(self, conditions: Iterable[ConditionDef | Mapping[str, Any]] | None) -> bool:
        """AND over the conditions; malformed or unknown entries count as unmet."""
        parsed: List[ConditionDef] = []
        for index, condition in enumerate(conditions or ()):
            if isinstance(condition, Mapping):
                try:
                    condition = parse_condition(dict(condition), f"condition[{index}]")
                except DataError as exc:
                    logger.warning("Malformed condition treated as unsatisfied: %s", exc)
                    return False
            parsed.append(condition)
        return evaluate_conditions(parsed, self._session)

    def set_checkpoint(self, checkpoint_id: str) -> CheckpointReachedEvent:
        """Move the resume point; the first visit per session requests an autosave."""
        if not self._graph.has_checkpoint(checkpoint_id):
            logger.warning("Checkpoint '%s' is not declared in the story data", checkpoint_id)
        self.state.current_checkpoint = checkpoint_id
        requested = False
        if self._session.checkpoints.claim_autosave(checkpoint_id) and self._autosave_queue is not None:
            requested = self._autosave_queue.request(checkpoint_id)
        logger.info("Checkpoint set: %s", checkpoint_id)
        return CheckpointReachedEvent(checkpoint_id=checkpoint_id, autosave_requested=requested)

    def has_reached_checkpoint(self, checkpoint_id: str) -> bool:
        """True only for the current checkpoint."""
        return self._session.has_reached_checkpoint(checkpoint_id)

    def get_current_checkpoint(self) -> CheckpointDef | None:
        current = self.state.current_checkpoint
        return self._graph.checkpoint(current) if current else None

    def unlock_power(self, power_id: str, source: str | None = None) -> bool:
        return self._powers.unlock_power(power_id, source)

    def is_power_unlocked(self, power_id: str) -> bool:
        return self._session.is_power_unlocked(power_id)

    def get_unlocked_powers(self) -> List[str]:
        return [power.id for power in self._powers.get_unlocked_power_list()]

    def get_story_state(self) -> Dict[str, Any]:
        """JSON-ready snapshot of story progress."""
        return {
            "current_checkpoint": self.state.current_checkpoint,
            "completed_events": sorted(self.state.completed_events),
            "story_flags": self.state.flags.as_dict(),
            "unlocked_powers": sorted(self._session.unlocked_power_ids()),
        }

    def get_story_progress(self) -> StoryProgressView:
        total = len(self._graph)
        completed = sum(1 for event_id in self._graph.event_ids() if event_id in self.state.completed_events)
        return StoryProgressView(
            current_checkpoint=self.state.current_checkpoint,
            completed_events=completed,
            total_events=total,
            progress_percentage=(completed / total) * 100 if total else 0.0,
            unlocked_powers=len(self._session.unlocked_power_ids()),
        )

    def reset_story(self) -> None:
        self._session.story = StoryState()
        self._seed_initial_state()
        logger.info("Story reset to initial state")

    def _read_graph(self, source: StorySource) -> StoryGraph:
        if isinstance(source, StoryGraph):
            return source
        if isinstance(source, Mapping):
            return StoryRepository(raw=source).graph()
        if source is None:
            return StoryRepository().graph()
        path = Path(source)
        return StoryRepository(path.parent, filename=path.name).graph()

    def _seed_initial_state(self) -> None:
        for name, value in self._graph.initial_flags.items():
            if name not in self.state.flags:
                self.state.flags.set(name, value)
        if self.state.current_checkpoint is None:
            self.state.current_checkpoint = self._graph.start_checkpoint

    def _hold_autosaves(self) -> ContextManager[None]:
        """Defer checkpoint autosaves until the current event has fully applied."""
        if self._autosave_queue is None:
            return nullcontext()
        return self._autosave_queue.hold()

    def _available_choices(self, event: StoryEventDef) -> List[ChoiceView]:
        return [
            ChoiceView(index=index, text=choice.text, next_event_id=choice.next_event_id)
            for index, choice in enumerate(event.choices)
            if evaluate_conditions(choice.conditions, self._session)
        ]

    def _apply_effects(self, effects: Sequence[StoryEffectDef], *, source: str) -> List[StoryNotification]:
        emitted: List[StoryNotification] = []
        for effect in effects:
            effect_type = effect.type
            if effect_type == "set_flag":
                flag = self._effect_str(effect, "flag", "flag_id")
                if flag is not None:
                    emitted.append(self.set_story_flag(flag, effect.data.get("value", True)))
            elif effect_type == "unlock_power":
                power_id = self._effect_str(effect, "power_id", "powerId")
                if power_id is not None and self._powers.unlock_power(power_id, source):
                    emitted.append(PowerUnlockedEvent(power_id=power_id, source=source))
            elif effect_type == "set_checkpoint":
                checkpoint_id = self._effect_str(effect, "checkpoint_id", "checkpointId")
                if checkpoint_id is not None:
                    emitted.append(self.set_checkpoint(checkpoint_id))
            else:
                logger.warning("Unknown effect type '%s' from '%s' ignored", effect_type, source)
        return emitted

    def _refresh_power_unlocks(self) -> List[StoryNotification]:
        return [
            PowerUnlockedEvent(power_id=power_id, source="conditions")
            for power_id in self._powers.refresh_unlocks(self._session)
        ]

    @staticmethod
    def _effect_str(effect: StoryEffectDef, *keys: str) -> str | None:
        for key in keys:
            value = effect.data.get(key)
            if isinstance(value, str) and value:
                return value
        logger.warning("Effect '%s' is missing '%s'; skipped", effect.type, keys[0])
        return None
