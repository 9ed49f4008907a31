"""Serialization helpers for save slots."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from saga.domain.flag_store import FlagStore
from saga.domain.power_registry import PowerRegistry
from saga.domain.state import PowerRuntimeState, SessionState, StoryState
from saga.services.errors import SaveLoadError, SchemaVersionMismatchError

SavePayload = Dict[str, Any]


@dataclass(slots=True)
class RestoredState:
    """Fully validated state ready to be swapped into the session."""

    story: StoryState
    powers: Dict[str, PowerRuntimeState]
    metadata: Dict[str, Any]
    extra: Any = None


class SaveService:
    """Converts session state to/from a validated, versioned payload."""

    SCHEMA_VERSION = 1

    def __init__(self, registry: PowerRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> PowerRegistry:
        return self._registry

    def serialize(
        self,
        session: SessionState,
        *,
        metadata: Mapping[str, Any],
        saved_at: int,
        extra: Any = None,
    ) -> SavePayload:
        """Capture a self-contained copy of the session; later mutations do not leak in."""
        story = session.story
        return {
            "schema_version": self.SCHEMA_VERSION,
            "saved_at": saved_at,
            "metadata": dict(metadata),
            "story": {
                "current_checkpoint": story.current_checkpoint,
                "completed_events": sorted(story.completed_events),
                "story_flags": copy.deepcopy(story.flags.as_dict()),
                "unlocked_powers": sorted(session.unlocked_power_ids()),
            },
            "powers": {
                power_id: {
                    "unlocked": runtime.unlocked,
                    "last_activated_at": runtime.last_activated_at,
                    "active_until": runtime.active_until,
                    "toggled_on": runtime.toggled_on,
                }
                for power_id, runtime in session.powers.items()
            },
            "extra": copy.deepcopy(extra),
        }

    def deserialize(self, payload: Mapping[str, Any]) -> RestoredState:
        """Validate a payload and rebuild story and power state from it."""
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        version = payload.get("schema_version")
        if version != self.SCHEMA_VERSION:
            raise SchemaVersionMismatchError(
                f"Save schema version {version!r} is not supported (expected {self.SCHEMA_VERSION})."
            )
        metadata = self.read_metadata(payload)
        story_payload = self._require_dict(payload.get("story"), "story")
        powers_payload = self._require_dict(payload.get("powers"), "powers")

        story = StoryState(
            current_checkpoint=self._coerce_optional_str(
                story_payload.get("current_checkpoint"), "story.current_checkpoint"
            ),
            completed_events=set(
                self._coerce_str_list(story_payload.get("completed_events"), "story.completed_events")
            ),
            flags=self._coerce_flags(story_payload.get("story_flags")),
        )
        powers = self._registry.new_runtime_states()
        for power_id, entry in powers_payload.items():
            if power_id not in self._registry:
                raise SaveLoadError(f"Save incompatible with current definitions: power '{power_id}' missing.")
            powers[power_id] = self._coerce_runtime(power_id, entry)

        for power_id in self._coerce_str_list(story_payload.get("unlocked_powers"), "story.unlocked_powers"):
            runtime = powers.get(power_id)
            if runtime is None:
                raise SaveLoadError(f"Save incompatible with current definitions: power '{power_id}' missing.")
            runtime.unlocked = True

        return RestoredState(story=story, powers=powers, metadata=metadata, extra=copy.deepcopy(payload.get("extra")))

    def read_metadata(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Return the slot metadata with ``saved_at`` folded in."""
        metadata = dict(self._require_dict(payload.get("metadata"), "metadata"))
        metadata["saved_at"] = self._require_int(payload.get("saved_at"), "saved_at")
        metadata["key"] = self._require_str(metadata.get("key"), "metadata.key")
        metadata["sequence"] = self._coerce_non_negative_int(
            metadata.get("sequence"), "metadata.sequence", default=0
        )
        return metadata

    def _coerce_runtime(self, power_id: str, value: Any) -> PowerRuntimeState:
        context = f"powers.{power_id}"
        mapping = self._require_dict(value, context)
        runtime = PowerRuntimeState(
            unlocked=self._coerce_bool(mapping.get("unlocked"), f"{context}.unlocked", default=False),
            last_activated_at=self._coerce_optional_int(
                mapping.get("last_activated_at"), f"{context}.last_activated_at"
            ),
            active_until=self._coerce_optional_int(mapping.get("active_until"), f"{context}.active_until"),
            toggled_on=self._coerce_bool(mapping.get("toggled_on"), f"{context}.toggled_on", default=False),
        )
        if runtime.active_until is not None:
            power = self._registry.get(power_id)
            assert power is not None
            if runtime.last_activated_at is None:
                raise SaveLoadError(f"{context}.active_until requires last_activated_at.")
            if runtime.active_until > runtime.last_activated_at + power.active_duration_ms:
                raise SaveLoadError(f"{context}.active_until exceeds the power's active duration.")
        return runtime

    @staticmethod
    def _coerce_flags(value: Any) -> FlagStore:
        if value is None:
            return FlagStore()
        if not isinstance(value, Mapping):
            raise SaveLoadError("story.story_flags must be an object.")
        flags = FlagStore()
        for name, entry in value.items():
            if not isinstance(name, str):
                raise SaveLoadError("story.story_flags keys must be strings.")
            flags.set(name, entry)
        return flags

    @staticmethod
    def _require_dict(value: Any, context: str) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise SaveLoadError(f"{context} must be an object.")
        return value

    @staticmethod
    def _require_str(value: Any, context: str) -> str:
        if not isinstance(value, str):
            raise SaveLoadError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_int(value: Any, context: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SaveLoadError(f"{context} must be an integer.")
        return value

    def _coerce_optional_str(self, value: Any, context: str) -> str | None:
        if value is None:
            return None
        return self._require_str(value, context)

    def _coerce_optional_int(self, value: Any, context: str) -> int | None:
        if value is None:
            return None
        return self._require_int(value, context)

    def _coerce_non_negative_int(self, value: Any, context: str, *, default: int) -> int:
        if value is None:
            return default
        value_int = self._require_int(value, context)
        if value_int < 0:
            raise SaveLoadError(f"{context} must be a non-negative integer.")
        return value_int

    @staticmethod
    def _coerce_bool(value: Any, context: str, *, default: bool) -> bool:
        if value is None:
            return default
        if not isinstance(value, bool):
            raise SaveLoadError(f"{context} must be a boolean.")
        return value

    def _coerce_str_list(self, value: Any, context: str) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise SaveLoadError(f"{context} must be a list.")
        return [self._require_str(entry, f"{context}[{index}]") for index, entry in enumerate(value)]
