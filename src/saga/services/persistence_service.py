"""Manual and rotating automatic save slots."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List

from saga.core.clock import Clock
from saga.core.types import PersistenceFailure, SaveKind
from saga.data.errors import CorruptSaveError, SaveStoreError
from saga.data.save_store import SlotStore
from saga.domain.state import SessionState
from saga.services.autosave import AutoSaveQueue
from saga.services.errors import SaveLoadError, SchemaVersionMismatchError
from saga.services.save_service import SavePayload, SaveService

logger = logging.getLogger(__name__)

MANUAL_KEY_PREFIX = "manual_save_"
AUTO_KEY_PREFIX = "auto_save_"

ExtraProvider = Callable[[], Any]


@dataclass(slots=True)
class SaveSlotMeta:
    """Manifest entry describing one stored slot without its payload."""

    key: str
    kind: SaveKind
    saved_at: int
    slot_index: int
    sequence: int
    trigger: str | None = None
    checkpoint: str | None = None


@dataclass(slots=True)
class SaveResult:
    success: bool
    key: str | None = None
    reason: PersistenceFailure | None = None
    message: str | None = None
    meta: SaveSlotMeta | None = None


@dataclass(slots=True)
class LoadResult:
    success: bool
    key: str | None = None
    reason: PersistenceFailure | None = None
    message: str | None = None
    meta: SaveSlotMeta | None = None
    extra: Any = None


@dataclass(slots=True)
class PersistenceStatus:
    autosave_enabled: bool
    available_saves: int
    storage_bytes: int
    total_saves_written: int
    manual_slot_count: int
    auto_slot_count: int
    pending_autosaves: List[str] = field(default_factory=list)


class PersistenceService:
    """Snapshots the session into slots and restores it atomically.

    Saves and loads are single-flight: a request that arrives while another
    one holds the lock fails with reason ``busy`` instead of waiting.
    """

    def __init__(
        self,
        save_service: SaveService,
        session: SessionState,
        store: SlotStore,
        clock: Clock,
        *,
        manual_slot_count: int = 3,
        auto_slot_count: int = 3,
        autosave_enabled: bool = True,
        quarantine_corrupt_saves: bool = True,
        autosave_queue: AutoSaveQueue | None = None,
        extra_provider: ExtraProvider | None = None,
    ) -> None:
        if manual_slot_count < 1 or auto_slot_count < 1:
            raise ValueError("Slot counts must be at least 1.")
        self._save_service = save_service
        self._session = session
        self._store = store
        self._clock = clock
        self._manual_slot_count = manual_slot_count
        self._auto_slot_count = auto_slot_count
        self._autosave_enabled = autosave_enabled
        self._quarantine_corrupt = quarantine_corrupt_saves
        self._extra_provider = extra_provider
        self._queue = autosave_queue or AutoSaveQueue()
        self._queue.bind(self._handle_autosave_request)
        self._lock = threading.Lock()
        self._sequence: int | None = None
        self._total_saves_written = 0

    @property
    def autosave_queue(self) -> AutoSaveQueue:
        return self._queue

    @property
    def store(self) -> SlotStore:
        return self._store

    @staticmethod
    def manual_slot_key(slot_index: int) -> str:
        return f"{MANUAL_KEY_PREFIX}{slot_index}"

    @staticmethod
    def auto_slot_key(slot_index: int) -> str:
        return f"{AUTO_KEY_PREFIX}{slot_index}"

    def manual_save(self, slot_index: int, extra: Any = None) -> SaveResult:
        if not isinstance(slot_index, int) or not 0 <= slot_index < self._manual_slot_count:
            logger.warning("Manual save slot %r is out of range", slot_index)
            return SaveResult(
                success=False,
                reason="invalid_slot",
                message=f"Slot must be between 0 and {self._manual_slot_count - 1}.",
            )
        with self._single_flight() as acquired:
            if not acquired:
                return SaveResult(success=False, reason="busy", message="Another save or load is in progress.")
            key = self.manual_slot_key(slot_index)
            payload = self._capture(key, "manual", slot_index, trigger=None, extra=extra)
            return self._write(key, payload)

    def auto_save(self, trigger: str) -> SaveResult:
        """Write a rotating autosave; normally reached through the autosave queue."""
        if not self._autosave_enabled:
            logger.debug("Autosave disabled; skipping trigger '%s'", trigger)
            return SaveResult(success=False, reason="disabled", message="Autosave is disabled.")
        with self._single_flight() as acquired:
            if not acquired:
                return SaveResult(success=False, reason="busy", message="Another save or load is in progress.")
            slot_index = self._next_auto_slot()
            key = self.auto_slot_key(slot_index)
            payload = self._capture(key, "auto", slot_index, trigger=trigger, extra=None)
            return self._write(key, payload)

    def process_pending_autosaves(self) -> List[str]:
        """Run queued autosave requests; returns the triggers processed."""
        return self._queue.drain()

    def get_available_saves(self) -> List[SaveSlotMeta]:
        """Manifest of readable slots, most recent first."""
        entries: List[SaveSlotMeta] = []
        for key in self._store.keys():
            meta = self._read_meta(key)
            if meta is not None:
                entries.append(meta)
        entries.sort(key=lambda meta: (meta.saved_at, meta.sequence), reverse=True)
        return entries

    def load_game(self, key: str) -> LoadResult:
        """Restore a slot; any failure leaves live state untouched."""
        with self._single_flight() as acquired:
            if not acquired:
                return LoadResult(success=False, key=key, reason="busy", message="Another save or load is in progress.")
            try:
                exists = self._store.exists(key)
            except SaveStoreError as exc:
                return LoadResult(success=False, key=key, reason="invalid_slot", message=str(exc))
            if not exists:
                logger.warning("Save '%s' not found", key)
                return LoadResult(success=False, key=key, reason="not_found", message=f"Save '{key}' does not exist.")
            try:
                payload = self._store.read(key)
                restored = self._save_service.deserialize(payload)
            except SchemaVersionMismatchError as exc:
                logger.warning("Save '%s' has an incompatible schema: %s", key, exc)
                return LoadResult(success=False, key=key, reason="version_mismatch", message=str(exc))
            except (CorruptSaveError, SaveLoadError) as exc:
                logger.warning("Save '%s' is corrupt: %s", key, exc)
                self._quarantine(key)
                return LoadResult(success=False, key=key, reason="corrupt", message=str(exc))
            except SaveStoreError as exc:
                logger.exception("Save '%s' could not be read", key)
                return LoadResult(success=False, key=key, reason="not_found", message=str(exc))

            self._session.replace(restored.story, restored.powers)
            self._save_service.registry.clear_unlock_sources()
            self._queue.clear()
            meta = self._meta_from_metadata(restored.metadata)
            logger.info("Game loaded from '%s'", key)
            return LoadResult(success=True, key=key, meta=meta, extra=restored.extra)

    def load_latest(self) -> LoadResult:
        saves = self.get_available_saves()
        if not saves:
            return LoadResult(success=False, reason="not_found", message="No saves available.")
        return self.load_game(saves[0].key)

    def delete_save(self, key: str) -> bool:
        with self._single_flight() as acquired:
            if not acquired:
                return False
            try:
                deleted = self._store.delete(key)
            except SaveStoreError:
                logger.exception("Save '%s' could not be deleted", key)
                return False
        if deleted:
            logger.info("Save deleted: %s", key)
        return deleted

    def clear_saves(self) -> int:
        """Delete every manual and auto slot; returns how many were removed."""
        removed = 0
        for key in self._store.keys():
            if key.startswith((MANUAL_KEY_PREFIX, AUTO_KEY_PREFIX)) and self.delete_save(key):
                removed += 1
        return removed

    def get_status(self) -> PersistenceStatus:
        return PersistenceStatus(
            autosave_enabled=self._autosave_enabled,
            available_saves=len(self.get_available_saves()),
            storage_bytes=self._store.usage_bytes(),
            total_saves_written=self._total_saves_written,
            manual_slot_count=self._manual_slot_count,
            auto_slot_count=self._auto_slot_count,
            pending_autosaves=self._queue.pending(),
        )

    def is_autosave_enabled(self) -> bool:
        return self._autosave_enabled

    def set_autosave_enabled(self, enabled: bool) -> None:
        self._autosave_enabled = bool(enabled)
        logger.info("Autosave %s", "enabled" if enabled else "disabled")

    @contextmanager
    def _single_flight(self) -> Iterator[bool]:
        acquired = self._lock.acquire(blocking=False)
        if not acquired:
            logger.warning("Persistence request rejected: operation already in progress")
        try:
            yield acquired
        finally:
            if acquired:
                self._lock.release()

    def _handle_autosave_request(self, trigger: str) -> None:
        result = self.auto_save(trigger)
        if not result.success and result.reason != "disabled":
            logger.warning("Autosave for '%s' failed: %s", trigger, result.message)

    def _capture(
        self,
        key: str,
        kind: SaveKind,
        slot_index: int,
        *,
        trigger: str | None,
        extra: Any,
    ) -> SavePayload:
        if extra is None and self._extra_provider is not None:
            extra = self._extra_provider()
        metadata: Dict[str, Any] = {
            "key": key,
            "kind": kind,
            "slot_index": slot_index,
            "trigger": trigger,
            "sequence": self._next_sequence(),
            "checkpoint": self._session.story.current_checkpoint,
        }
        return self._save_service.serialize(
            self._session, metadata=metadata, saved_at=self._clock.now_ms(), extra=extra
        )

    def _write(self, key: str, payload: SavePayload) -> SaveResult:
        try:
            self._store.write(key, payload)
        except SaveStoreError as exc:
            logger.exception("Save '%s' could not be written", key)
            return SaveResult(success=False, key=key, reason="write_failed", message=str(exc))
        self._total_saves_written += 1
        meta = self._meta_from_metadata({**payload["metadata"], "saved_at": payload["saved_at"]})
        logger.info("Game saved to '%s'", key)
        return SaveResult(success=True, key=key, meta=meta)

    def _next_auto_slot(self) -> int:
        """Lowest empty auto slot, else the oldest one (unreadable slots first)."""
        candidates: List[tuple[int, int, int]] = []
        for index in range(self._auto_slot_count):
            key = self.auto_slot_key(index)
            if not self._store.exists(key):
                return index
            meta = self._read_meta(key)
            if meta is None:
                if not self._store.exists(key):
                    return index
                candidates.append((-1, -1, index))
            else:
                candidates.append((meta.saved_at, meta.sequence, index))
        oldest = min(candidates)
        logger.debug("Auto-slot rotation full; evicting slot %d", oldest[2])
        return oldest[2]

    def _next_sequence(self) -> int:
        if self._sequence is None:
            self._sequence = max((meta.sequence for meta in self.get_available_saves()), default=0)
        self._sequence += 1
        return self._sequence

    def _read_meta(self, key: str) -> SaveSlotMeta | None:
        try:
            payload = self._store.read(key)
            return self._meta_from_metadata(self._save_service.read_metadata(payload))
        except CorruptSaveError as exc:
            logger.warning("Skipping corrupt save '%s': %s", key, exc)
            self._quarantine(key)
        except (SaveLoadError, SaveStoreError) as exc:
            logger.warning("Skipping unreadable save '%s': %s", key, exc)
        return None

    def _quarantine(self, key: str) -> None:
        if not self._quarantine_corrupt:
            return
        try:
            self._store.quarantine(key)
        except SaveStoreError:
            logger.exception("Save '%s' could not be quarantined", key)
        else:
            logger.warning("Save '%s' quarantined", key)

    @staticmethod
    def _meta_from_metadata(metadata: Dict[str, Any]) -> SaveSlotMeta:
        key = metadata["key"]
        kind: SaveKind = "auto" if metadata.get("kind") == "auto" else "manual"
        slot_index = metadata.get("slot_index")
        return SaveSlotMeta(
            key=key,
            kind=kind,
            saved_at=metadata["saved_at"],
            slot_index=slot_index if isinstance(slot_index, int) else -1,
            sequence=metadata.get("sequence", 0),
            trigger=metadata.get("trigger") if isinstance(metadata.get("trigger"), str) else None,
            checkpoint=metadata.get("checkpoint") if isinstance(metadata.get("checkpoint"), str) else None,
        )
