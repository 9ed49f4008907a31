"""Key/value persistence for save records."""
from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from saga.data.errors import CorruptSaveError, SaveStoreError

SaveRecord = Dict[str, Any]


def _encode(payload: SaveRecord) -> str:
    try:
        return json.dumps(payload, indent=2, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SaveStoreError(f"Save payload is not JSON-serializable: {exc}") from exc


def _decode(key: str, text: str) -> SaveRecord:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptSaveError(f"Save '{key}' is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise CorruptSaveError(f"Save '{key}' must contain a JSON object.")
    return payload


class SlotStore(ABC):
    """Stores JSON-serializable save records under stable string keys."""

    @abstractmethod
    def write(self, key: str, payload: SaveRecord) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def read(self, key: str) -> SaveRecord:  # pragma: no cover - interface
        """Return the record or raise SaveStoreError / CorruptSaveError."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def quarantine(self, key: str) -> None:  # pragma: no cover - interface
        """Move a record aside so it is no longer listed."""
        raise NotImplementedError

    @abstractmethod
    def usage_bytes(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        return key in self.keys()


class FileSlotStore(SlotStore):
    """One ``<key>.json`` file per record inside a save directory."""

    SUFFIX = ".json"
    QUARANTINE_SUFFIX = ".corrupt"

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def write(self, key: str, payload: SaveRecord) -> None:
        text = _encode(payload)
        path = self._path(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise SaveStoreError(f"Unable to write save '{key}': {exc}") from exc

    def read(self, key: str) -> SaveRecord:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise SaveStoreError(f"Save '{key}' does not exist.") from exc
        except UnicodeDecodeError as exc:
            raise CorruptSaveError(f"Save '{key}' is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise SaveStoreError(f"Unable to read save '{key}': {exc}") from exc
        return _decode(key, text)

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise SaveStoreError(f"Unable to delete save '{key}': {exc}") from exc
        return True

    def keys(self) -> List[str]:
        if not self._base_dir.is_dir():
            return []
        return sorted(path.stem for path in self._base_dir.glob(f"*{self.SUFFIX}") if path.is_file())

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def quarantine(self, key: str) -> None:
        path = self._path(key)
        target = path.with_name(path.name + self.QUARANTINE_SUFFIX)
        try:
            os.replace(path, target)
        except OSError as exc:
            raise SaveStoreError(f"Unable to quarantine save '{key}': {exc}") from exc

    def usage_bytes(self) -> int:
        if not self._base_dir.is_dir():
            return 0
        return sum(path.stat().st_size for path in self._base_dir.glob(f"*{self.SUFFIX}") if path.is_file())

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise SaveStoreError(f"Invalid save key: {key!r}")
        return self._base_dir / f"{key}{self.SUFFIX}"


class MemorySlotStore(SlotStore):
    """Keeps encoded records in memory; records still round-trip through JSON."""

    def __init__(self) -> None:
        self._records: Dict[str, str] = {}
        self.quarantined: Dict[str, str] = {}

    def write(self, key: str, payload: SaveRecord) -> None:
        self._records[key] = _encode(payload)

    def write_raw(self, key: str, text: str) -> None:
        """Store text verbatim, bypassing encoding."""
        self._records[key] = text

    def read(self, key: str) -> SaveRecord:
        try:
            text = self._records[key]
        except KeyError as exc:
            raise SaveStoreError(f"Save '{key}' does not exist.") from exc
        return _decode(key, text)

    def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self._records)

    def exists(self, key: str) -> bool:
        return key in self._records

    def quarantine(self, key: str) -> None:
        try:
            self.quarantined[key] = self._records.pop(key)
        except KeyError as exc:
            raise SaveStoreError(f"Save '{key}' does not exist.") from exc

    def usage_bytes(self) -> int:
        return sum(len(text.encode("utf-8")) for text in self._records.values())
