"""Immutable event graph loaded from story data."""
from __future__ import annotations

from typing import Dict, Iterator, List, Mapping

from saga.domain.defs import CheckpointDef, StoryEventDef


class StoryGraph:
    """Event definitions, checkpoint catalog and starting flags."""

    def __init__(
        self,
        events: Mapping[str, StoryEventDef],
        checkpoints: Mapping[str, CheckpointDef] | None = None,
        initial_flags: Mapping[str, object] | None = None,
        *,
        start_checkpoint: str | None = None,
    ) -> None:
        self._events: Dict[str, StoryEventDef] = dict(events)
        self._checkpoints: Dict[str, CheckpointDef] = dict(checkpoints or {})
        self._initial_flags: Dict[str, object] = dict(initial_flags or {})
        if start_checkpoint is None and "game_start" in self._checkpoints:
            start_checkpoint = "game_start"
        self._start_checkpoint = start_checkpoint

    def get(self, event_id: str) -> StoryEventDef | None:
        return self._events.get(event_id)

    def events(self) -> List[StoryEventDef]:
        return list(self._events.values())

    def event_ids(self) -> List[str]:
        return list(self._events)

    def checkpoint(self, checkpoint_id: str) -> CheckpointDef | None:
        return self._checkpoints.get(checkpoint_id)

    def checkpoints(self) -> List[CheckpointDef]:
        return list(self._checkpoints.values())

    def has_checkpoint(self, checkpoint_id: str) -> bool:
        return checkpoint_id in self._checkpoints

    @property
    def initial_flags(self) -> Dict[str, object]:
        return dict(self._initial_flags)

    @property
    def start_checkpoint(self) -> str | None:
        return self._start_checkpoint

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __iter__(self) -> Iterator[StoryEventDef]:
        return iter(self._events.values())

    def __len__(self) -> int:
        return len(self._events)
