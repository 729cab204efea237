from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from slotbook.application.exceptions import NotFound, ValidationError
from slotbook.application.ports.event_store import EventStorePort
from slotbook.domain.entities.event import Event, EventDraft, EventType


class CalendarEventsUseCase:
    """
    Manual calendar entries (blocks, meetings, tasks).

    Booking events are read-only here: they are created, moved and cancelled
    only through BookingUseCase, which holds the provider lock.
    """

    def __init__(self, store: EventStorePort, timezone: ZoneInfo) -> None:
        self._store = store
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def list_events(self, provider_id: str) -> list[Event]:
        return self._store.list_by_provider(provider_id)

    def get_event(self, event_id: int) -> Event:
        return self._store.get(event_id)

    def create_event(self, draft: EventDraft) -> Event:
        if draft.event_type == EventType.booking:
            raise ValidationError(
                "Bookings are created through /api/bookings",
                {"event_type": "booking events cannot be created here"},
            )
        if not draft.title or not draft.title.strip():
            raise ValidationError("Title is required", {"title": "required"})
        event = self._store.create(
            replace(
                draft,
                start_time=self._localize(draft.start_time),
                end_time=self._localize(draft.end_time),
            )
        )
        self._logger.info("Calendar event created", extra={"provider_id": event.user_id, "event_id": event.id})
        return event

    def update_event(self, event_id: int, changes: dict[str, Any]) -> Event:
        self._require_manual(self._store.get(event_id))
        if changes.get("event_type") == EventType.booking:
            raise ValidationError(
                "Bookings are created through /api/bookings",
                {"event_type": "cannot change an event into a booking"},
            )
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("Title is required", {"title": "required"})
        if "event_type" in changes and changes["event_type"] is None:
            changes = {**changes, "event_type": EventType.busy}
        for name in ("start_time", "end_time"):
            if name in changes:
                changes = {**changes, name: self._localize(changes[name])}
        return self._store.update(event_id, changes)

    def delete_event(self, event_id: int) -> None:
        self._require_manual(self._store.get(event_id))
        if not self._store.delete(event_id):
            raise NotFound(f"Event {event_id} not found")
        self._logger.info("Calendar event deleted", extra={"event_id": event_id})

    def _require_manual(self, event: Event) -> None:
        if event.event_type == EventType.booking:
            raise ValidationError(
                f"Event {event.id} is a booking, use /api/bookings/{event.id}",
                {"id": "booking events are managed through /api/bookings"},
            )

    def _localize(self, value: datetime) -> datetime:
        """Naive instants are read as business-timezone wall time."""
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=self._timezone)
        return value
