"""Static power catalog."""
from __future__ import annotations

from typing import Dict, Iterable, List

from saga.domain.defs import PowerDef
from saga.domain.state import PowerRuntimeState


class PowerRegistry:
    """Power definitions in catalog order plus unlock diagnostics."""

    def __init__(self, definitions: Iterable[PowerDef]) -> None:
        self._definitions: Dict[str, PowerDef] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Duplicate power id '{definition.id}'.")
            self._definitions[definition.id] = definition
        self._unlock_sources: Dict[str, str | None] = {}

    def get(self, power_id: str) -> PowerDef | None:
        return self._definitions.get(power_id)

    def all(self) -> List[PowerDef]:
        return list(self._definitions.values())

    def ids(self) -> List[str]:
        return list(self._definitions)

    def new_runtime_states(self) -> Dict[str, PowerRuntimeState]:
        """Fresh, locked runtime state for every catalog entry."""
        return {power_id: PowerRuntimeState() for power_id in self._definitions}

    def record_unlock_source(self, power_id: str, source: str | None) -> None:
        self._unlock_sources[power_id] = source

    def unlock_source(self, power_id: str) -> str | None:
        return self._unlock_sources.get(power_id)

    def clear_unlock_sources(self) -> None:
        self._unlock_sources.clear()

    def __contains__(self, power_id: object) -> bool:
        return power_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
