"""Session-scoped record of which checkpoints already produced an autosave."""
from __future__ import annotations

from typing import Set


class CheckpointTracker:
    """Deduplicates autosave requests per checkpoint for one session."""

    def __init__(self) -> None:
        self._autosaved: Set[str] = set()

    def claim_autosave(self, checkpoint_id: str) -> bool:
        """Mark the checkpoint; True only the first time it is seen."""
        if checkpoint_id in self._autosaved:
            return False
        self._autosaved.add(checkpoint_id)
        return True

    def has_autosaved(self, checkpoint_id: str) -> bool:
        return checkpoint_id in self._autosaved

    def autosaved(self) -> Set[str]:
        return set(self._autosaved)

    def clear(self) -> None:
        self._autosaved.clear()
