"""Repository for story event definitions."""
from __future__ import annotations

from typing import Dict, List

from saga.core.types import STORY_EVENT_TYPES
from saga.data.errors import DataReferenceError, DataValidationError
from saga.data.repositories.base import RepositoryBase
from saga.data.repositories.condition_parser import parse_conditions
from saga.domain.defs import CheckpointDef, StoryChoiceDef, StoryEffectDef, StoryEventDef
from saga.domain.story_graph import StoryGraph


class StoryRepository(RepositoryBase[StoryEventDef]):
    """Loads story events and checkpoints and validates their structure."""

    def __init__(self, base_path=None, *, filename: str = "story.json", raw=None) -> None:
        super().__init__(filename, base_path, raw=raw)
        self._checkpoints: Dict[str, CheckpointDef] = {}
        self._initial_flags: Dict[str, object] = {}
        self._graph: StoryGraph | None = None

    def graph(self) -> StoryGraph:
        """Return the validated story graph, loading it on first use."""
        if self._graph is None:
            self._ensure_loaded()
            assert self._definitions is not None
            self._graph = StoryGraph(
                self._definitions,
                self._checkpoints,
                self._initial_flags,
            )
        return self._graph

    def checkpoints(self) -> List[CheckpointDef]:
        self._ensure_loaded()
        return list(self._checkpoints.values())

    def _build(self, raw: dict[str, object]) -> Dict[str, StoryEventDef]:
        raw_events = raw.get("events")
        if not isinstance(raw_events, list):
            raise DataValidationError("Story data must define an 'events' list.")
        raw_checkpoints = raw.get("checkpoints")
        if not isinstance(raw_checkpoints, dict):
            raise DataValidationError("Story data must define a 'checkpoints' object.")

        self._checkpoints = self._parse_checkpoints(raw_checkpoints)
        self._initial_flags = dict(self._require_mapping(raw.get("initial_flags", {}), "initial_flags"))

        events: Dict[str, StoryEventDef] = {}
        for index, entry in enumerate(raw_events):
            event = self._parse_event(entry, f"events[{index}]")
            if event.id in events:
                raise DataValidationError(f"Duplicate story event id '{event.id}'.")
            events[event.id] = event
        self._validate_references(events)
        return events

    def _parse_event(self, entry: object, context: str) -> StoryEventDef:
        event_data = self._require_mapping(entry, context)
        event_id = self._require_str(event_data.get("id"), f"{context} id")
        event_ctx = f"story event '{event_id}'"
        event_type = event_data.get("type")
        if event_type not in STORY_EVENT_TYPES:
            raise DataValidationError(
                f"{event_ctx} type must be one of {', '.join(STORY_EVENT_TYPES)}."
            )
        content = self._require_mapping(event_data.get("content", {}), f"{event_ctx} content")
        text = self._optional_str(content.get("text"), f"{event_ctx} text") or ""
        speaker = self._optional_str(content.get("speaker"), f"{event_ctx} speaker")
        choices = self._parse_choices(content.get("choices"), event_ctx)
        if event_type == "branch" and not choices:
            raise DataValidationError(f"{event_ctx} is a branch but defines no choices.")
        next_event = event_data.get("next_event", content.get("next_event"))

        return StoryEventDef(
            id=event_id,
            type=event_type,
            text=text,
            speaker=speaker,
            conditions=parse_conditions(event_data.get("conditions"), f"{event_ctx} conditions"),
            effects=self._parse_effects(event_data.get("effects"), f"{event_ctx} effects"),
            choices=choices,
            next_event_id=self._optional_str(next_event, f"{event_ctx} next_event"),
            one_shot=self._require_bool(event_data.get("one_shot"), f"{event_ctx} one_shot", default=False),
        )

    def _parse_effects(self, raw_effects: object, context: str) -> tuple[StoryEffectDef, ...]:
        if raw_effects is None:
            return ()
        if not isinstance(raw_effects, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        effects: List[StoryEffectDef] = []
        for index, entry in enumerate(raw_effects):
            effect_ctx = f"{context}[{index}]"
            effect_data = self._require_mapping(entry, effect_ctx)
            effect_type = self._require_str(effect_data.get("type"), f"{effect_ctx} type")
            payload = {key: value for key, value in effect_data.items() if key != "type"}
            effects.append(StoryEffectDef(type=effect_type, data=payload))
        return tuple(effects)

    def _parse_choices(self, raw_choices: object, event_ctx: str) -> tuple[StoryChoiceDef, ...]:
        if raw_choices is None:
            return ()
        if not isinstance(raw_choices, list):
            raise DataValidationError(f"{event_ctx} choices must be a list if provided.")
        choices: List[StoryChoiceDef] = []
        for index, entry in enumerate(raw_choices):
            choice_ctx = f"{event_ctx} choices[{index}]"
            choice_mapping = self._require_mapping(entry, choice_ctx)
            choices.append(
                StoryChoiceDef(
                    text=self._require_str(choice_mapping.get("text"), f"{choice_ctx} text"),
                    next_event_id=self._optional_str(
                        choice_mapping.get("next_event"), f"{choice_ctx} next_event"
                    ),
                    effects=self._parse_effects(choice_mapping.get("effects"), f"{choice_ctx} effects"),
                    conditions=parse_conditions(
                        choice_mapping.get("conditions"), f"{choice_ctx} conditions"
                    ),
                )
            )
        return tuple(choices)

    def _parse_checkpoints(self, raw_checkpoints: dict) -> Dict[str, CheckpointDef]:
        checkpoints: Dict[str, CheckpointDef] = {}
        for checkpoint_id, payload in raw_checkpoints.items():
            context = f"checkpoint '{checkpoint_id}'"
            data = self._require_mapping(payload, context)
            checkpoints[checkpoint_id] = CheckpointDef(
                id=checkpoint_id,
                name=self._optional_str(data.get("name"), f"{context} name") or checkpoint_id,
                description=self._optional_str(data.get("description"), f"{context} description") or "",
            )
        return checkpoints

    @staticmethod
    def _validate_references(events: Dict[str, StoryEventDef]) -> None:
        for event in events.values():
            targets = [event.next_event_id] + [choice.next_event_id for choice in event.choices]
            for target in targets:
                if target is not None and target not in events:
                    raise DataReferenceError(
                        f"Story event '{event.id}' references missing event '{target}'."
                    )
