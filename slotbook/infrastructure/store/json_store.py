from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote

from slotbook.application.exceptions import NotFound, StoreUnavailable
from slotbook.application.ports.event_store import EventStorePort
from slotbook.domain.entities.event import Event, EventDraft
from slotbook.infrastructure.store.event_records import (
    apply_changes,
    build_event,
    event_from_record,
    event_to_record,
    sort_key,
    utc_now,
)

STORE_VERSION = 1


class JsonEventStore(EventStorePort):
    """
    Durable event store on the local filesystem.

    Layout under ``data_dir``:
      _meta.json                 id counter and the id -> provider index
      provider_<provider>.json   the provider's events, ordered by start_time

    Every write goes to a temp file followed by an atomic rename, so readers
    never see a half-written document.
    """

    def __init__(self, data_dir: str = "./data/events") -> None:
        self._data_dir = Path(data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailable(f"Event store directory is not usable: {e}") from e
        self._locks: dict[str, threading.RLock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._meta_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, provider_id: str) -> threading.RLock:
        """Get or create a lock for a provider file."""
        with self._lock_lock:
            if provider_id not in self._locks:
                self._locks[provider_id] = threading.RLock()
            return self._locks[provider_id]

    def _meta_path(self) -> Path:
        return self._data_dir / "_meta.json"

    def _provider_path(self, provider_id: str) -> Path:
        return self._data_dir / f"provider_{quote(provider_id, safe='')}.json"

    def _read_document(self, file_path: Path, default: dict[str, Any]) -> dict[str, Any]:
        if not file_path.exists():
            return default
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.error("Event store document unreadable", extra={"path": str(file_path), "error": str(e)})
            raise StoreUnavailable(f"Event store document {file_path.name} is unreadable") from e

    def _write_document(self, file_path: Path, data: dict[str, Any]) -> None:
        """Save a document atomically."""
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError as e:
            self._logger.error("Event store write failed", extra={"path": str(file_path), "error": str(e)})
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self._logger.warning("Could not remove temp file", extra={"path": str(temp_path)})
            raise StoreUnavailable(f"Event store write to {file_path.name} failed") from e

    def _load_meta(self) -> dict[str, Any]:
        return self._read_document(self._meta_path(), {"next_id": 1, "index": {}, "version": STORE_VERSION})

    def _load_events(self, provider_id: str) -> list[Event]:
        data = self._read_document(
            self._provider_path(provider_id),
            {"provider_id": provider_id, "events": [], "version": STORE_VERSION},
        )
        try:
            return [event_from_record(record) for record in data.get("events", [])]
        except (KeyError, TypeError, ValueError) as e:
            self._logger.error("Event record malformed", extra={"provider_id": provider_id, "error": str(e)})
            raise StoreUnavailable(f"Events for provider {provider_id} are malformed") from e

    def _save_events(self, provider_id: str, events: list[Event]) -> None:
        self._write_document(
            self._provider_path(provider_id),
            {
                "provider_id": provider_id,
                "events": [event_to_record(event) for event in sorted(events, key=sort_key)],
                "version": STORE_VERSION,
            },
        )

    def _provider_of(self, event_id: int) -> str:
        with self._meta_lock:
            meta = self._load_meta()
        provider_id = meta.get("index", {}).get(str(event_id))
        if provider_id is None:
            raise NotFound(f"Event {event_id} not found")
        return provider_id

    def create(self, draft: EventDraft) -> Event:
        # _meta_lock is shared by all providers but only held for the id and index write
        with self._meta_lock:
            meta = self._load_meta()
            event_id = int(meta.get("next_id", 1))
            event = build_event(event_id, draft, utc_now())
            meta["next_id"] = event_id + 1
            meta.setdefault("index", {})[str(event_id)] = event.user_id
            self._write_document(self._meta_path(), meta)

        with self._get_lock(event.user_id):
            events = self._load_events(event.user_id)
            events.append(event)
            self._save_events(event.user_id, events)

        self._logger.debug("Event persisted", extra={"event_id": event.id, "provider_id": event.user_id})
        return event

    def get(self, event_id: int) -> Event:
        provider_id = self._provider_of(event_id)
        for event in self._load_events(provider_id):
            if event.id == event_id:
                return event
        raise NotFound(f"Event {event_id} not found")

    def list_by_provider(
        self,
        provider_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        with self._get_lock(provider_id):
            events = self._load_events(provider_id)
        if start is not None and end is not None:
            events = [event for event in events if event.overlaps(start, end)]
        return sorted(events, key=sort_key)

    def update(self, event_id: int, changes: dict[str, Any]) -> Event:
        provider_id = self._provider_of(event_id)
        with self._get_lock(provider_id):
            events = self._load_events(provider_id)
            for position, event in enumerate(events):
                if event.id == event_id:
                    updated = apply_changes(event, changes, utc_now())
                    events[position] = updated
                    self._save_events(provider_id, events)
                    return updated
        raise NotFound(f"Event {event_id} not found")

    def delete(self, event_id: int) -> bool:
        try:
            provider_id = self._provider_of(event_id)
        except NotFound:
            return False

        with self._get_lock(provider_id):
            events = self._load_events(provider_id)
            remaining = [event for event in events if event.id != event_id]
            if len(remaining) == len(events):
                return False
            self._save_events(provider_id, remaining)

        with self._meta_lock:
            meta = self._load_meta()
            meta.get("index", {}).pop(str(event_id), None)
            self._write_document(self._meta_path(), meta)
        return True

    def find_overlapping(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None,
    ) -> list[Event]:
        return [
            event
            for event in self.list_by_provider(provider_id, start, end)
            if event.id != exclude_id
        ]

    def close(self) -> None:
        # every write is flushed on rename; nothing is buffered
        with self._lock_lock:
            self._locks.clear()
