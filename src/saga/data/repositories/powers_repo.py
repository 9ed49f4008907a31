"""Repository for power definitions."""
from __future__ import annotations

from typing import Dict

from saga.core.types import POWER_KINDS
from saga.data.errors import DataValidationError
from saga.data.repositories.base import RepositoryBase
from saga.data.repositories.condition_parser import parse_conditions
from saga.domain.defs import PowerDef


class PowersRepository(RepositoryBase[PowerDef]):
    """Loads the power catalog, keeping declaration order."""

    def __init__(self, base_path=None, *, filename: str = "powers.json", raw=None) -> None:
        super().__init__(filename, base_path, raw=raw)

    def _build(self, raw: dict[str, object]) -> Dict[str, PowerDef]:
        powers: Dict[str, PowerDef] = {}
        for power_id, payload in raw.items():
            context = f"power '{power_id}'"
            data = self._require_mapping(payload, context)
            kind = data.get("kind", "active")
            if kind not in POWER_KINDS:
                raise DataValidationError(f"{context} kind must be one of {', '.join(POWER_KINDS)}.")
            active_duration = self._require_non_negative_int(
                data.get("active_duration_ms"), f"{context} active_duration_ms"
            )
            if kind == "toggle" and active_duration:
                raise DataValidationError(f"{context} toggles cannot declare active_duration_ms.")
            powers[power_id] = PowerDef(
                id=power_id,
                name=self._optional_str(data.get("name"), f"{context} name") or power_id,
                description=self._optional_str(data.get("description"), f"{context} description") or "",
                kind=kind,
                cooldown_ms=self._require_non_negative_int(data.get("cooldown_ms"), f"{context} cooldown_ms"),
                active_duration_ms=active_duration,
                unlock_conditions=parse_conditions(
                    data.get("unlock_conditions"), f"{context} unlock_conditions"
                ),
                effect=self._optional_str(data.get("effect"), f"{context} effect"),
                recheck_conditions=self._require_bool(
                    data.get("recheck_conditions"), f"{context} recheck_conditions", default=False
                ),
                first_use_event=self._optional_str(data.get("first_use_event"), f"{context} first_use_event"),
            )
        return powers
