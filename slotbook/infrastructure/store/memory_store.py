from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Any

from slotbook.application.exceptions import NotFound
from slotbook.application.ports.event_store import EventStorePort
from slotbook.domain.entities.event import Event, EventDraft
from slotbook.infrastructure.store.event_records import apply_changes, build_event, sort_key, utc_now


class MemoryEventStore(EventStorePort):
    """Process-local event store. Contents are lost on restart."""

    def __init__(self) -> None:
        self._events: dict[int, Event] = {}
        self._by_provider: dict[str, set[int]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    def create(self, draft: EventDraft) -> Event:
        with self._lock:
            event = build_event(next(self._ids), draft, utc_now())
            self._events[event.id] = event
            self._by_provider.setdefault(event.user_id, set()).add(event.id)
        self._logger.debug("Event created", extra={"event_id": event.id, "provider_id": event.user_id})
        return event

    def get(self, event_id: int) -> Event:
        with self._lock:
            event = self._events.get(event_id)
        if event is None:
            raise NotFound(f"Event {event_id} not found")
        return event

    def list_by_provider(
        self,
        provider_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        with self._lock:
            events = [self._events[event_id] for event_id in self._by_provider.get(provider_id, ())]
        if start is not None and end is not None:
            events = [event for event in events if event.overlaps(start, end)]
        return sorted(events, key=sort_key)

    def update(self, event_id: int, changes: dict[str, Any]) -> Event:
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                raise NotFound(f"Event {event_id} not found")
            updated = apply_changes(event, changes, utc_now())
            self._events[event_id] = updated
        return updated

    def delete(self, event_id: int) -> bool:
        with self._lock:
            event = self._events.pop(event_id, None)
            if event is None:
                return False
            self._by_provider.get(event.user_id, set()).discard(event_id)
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
