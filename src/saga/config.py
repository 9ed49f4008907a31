"""Engine configuration persisted in the per-user data directory."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

_DEFAULT_MANUAL_SLOTS = 3
_DEFAULT_AUTO_SLOTS = 3


@dataclass(slots=True)
class EngineConfig:
    manual_slot_count: int = _DEFAULT_MANUAL_SLOTS
    auto_slot_count: int = _DEFAULT_AUTO_SLOTS
    autosave_enabled: bool = True
    deferred_autosave: bool = False
    quarantine_corrupt_saves: bool = True
    save_dir: Path | None = None
    definitions_dir: Path | None = None

    def resolved_save_dir(self) -> Path:
        return self.save_dir if self.save_dir is not None else get_save_dir()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manual_slot_count": self.manual_slot_count,
            "auto_slot_count": self.auto_slot_count,
            "autosave_enabled": self.autosave_enabled,
            "deferred_autosave": self.deferred_autosave,
            "quarantine_corrupt_saves": self.quarantine_corrupt_saves,
            "save_dir": str(self.save_dir) if self.save_dir is not None else None,
            "definitions_dir": str(self.definitions_dir) if self.definitions_dir is not None else None,
        }


def get_user_data_dir() -> Path:
    """Return the per-user data directory; ``SAGA_HOME`` overrides it."""
    override = os.environ.get("SAGA_HOME")
    if override:
        return Path(override)
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Saga"
        return Path.home() / "Saga"
    return Path.home() / ".config" / "saga"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def get_save_dir() -> Path:
    """Return the per-user save directory."""
    return get_user_data_dir() / "saves"


def _normalize_slot_count(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return default
    return value


def _normalize_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _normalize_path(value: object) -> Path | None:
    if isinstance(value, str) and value:
        return Path(value).expanduser()
    return None


def config_from_mapping(raw: Mapping[str, object]) -> EngineConfig:
    """Build a config from raw JSON, replacing invalid values with defaults."""
    return EngineConfig(
        manual_slot_count=_normalize_slot_count(raw.get("manual_slot_count"), _DEFAULT_MANUAL_SLOTS),
        auto_slot_count=_normalize_slot_count(raw.get("auto_slot_count"), _DEFAULT_AUTO_SLOTS),
        autosave_enabled=_normalize_bool(raw.get("autosave_enabled"), True),
        deferred_autosave=_normalize_bool(raw.get("deferred_autosave"), False),
        quarantine_corrupt_saves=_normalize_bool(raw.get("quarantine_corrupt_saves"), True),
        save_dir=_normalize_path(raw.get("save_dir")),
        definitions_dir=_normalize_path(raw.get("definitions_dir")),
    )


def load_config(path: Path | None = None) -> EngineConfig:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return EngineConfig()
    except (OSError, ValueError):
        return EngineConfig()
    if not isinstance(raw, dict):
        return EngineConfig()
    return config_from_mapping(raw)


def save_config(config: EngineConfig, path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = config_from_mapping(config.to_dict()).to_dict()
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
