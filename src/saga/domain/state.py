"""Domain-level state tracking."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Set

from saga.domain.checkpoint_tracker import CheckpointTracker
from saga.domain.flag_store import FlagStore


@dataclass
class StoryState:
    """Mutable narrative progress owned by the story service."""

    current_checkpoint: str | None = None
    completed_events: Set[str] = field(default_factory=set)
    flags: FlagStore = field(default_factory=FlagStore)


@dataclass
class PowerRuntimeState:
    """Per-power runtime state; timestamps are clock milliseconds."""

    unlocked: bool = False
    last_activated_at: int | None = None
    active_until: int | None = None
    toggled_on: bool = False

    def copy(self) -> "PowerRuntimeState":
        return PowerRuntimeState(
            unlocked=self.unlocked,
            last_activated_at=self.last_activated_at,
            active_until=self.active_until,
            toggled_on=self.toggled_on,
        )


class SessionState:
    """Single owner of all state shared between the services."""

    def __init__(
        self,
        story: StoryState | None = None,
        powers: Dict[str, PowerRuntimeState] | None = None,
    ) -> None:
        self.story = story or StoryState()
        self.powers: Dict[str, PowerRuntimeState] = powers if powers is not None else {}
        self.checkpoints = CheckpointTracker()

    def replace(self, story: StoryState, powers: Dict[str, PowerRuntimeState]) -> None:
        """Swap story and power state together."""
        self.story, self.powers = story, powers

    def unlocked_power_ids(self) -> Set[str]:
        return {power_id for power_id, runtime in self.powers.items() if runtime.unlocked}

    # ConditionContext
    def flag_matches(self, name: str, expected: object) -> bool:
        return self.story.flags.check(name, expected)

    def is_power_unlocked(self, power_id: str) -> bool:
        runtime = self.powers.get(power_id)
        return runtime is not None and runtime.unlocked

    def is_event_completed(self, event_id: str) -> bool:
        return event_id in self.story.completed_events

    def has_reached_checkpoint(self, checkpoint_id: str) -> bool:
        return self.story.current_checkpoint == checkpoint_id
