from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from slotbook.domain.entities.event import Event, EventDraft


class EventStorePort(ABC):
    @abstractmethod
    def create(self, draft: EventDraft) -> Event:
        """Persist a new event. Raises ValidationError if start_time >= end_time."""
        raise NotImplementedError

    @abstractmethod
    def get(self, event_id: int) -> Event:
        """Return the event or raise NotFound."""
        raise NotImplementedError

    @abstractmethod
    def list_by_provider(
        self,
        provider_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        """
        Events for a provider, ascending by start_time.
        When start and end are given, only events intersecting [start, end) are returned.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, event_id: int, changes: dict[str, Any]) -> Event:
        """Merge changes into the event and refresh updated_at. Raises NotFound or ValidationError."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, event_id: int) -> bool:
        """Remove the event. Returns True if it existed."""
        raise NotImplementedError

    @abstractmethod
    def find_overlapping(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None,
    ) -> list[Event]:
        """All provider events whose interval intersects [start, end)."""
        raise NotImplementedError

    def close(self) -> None:
        """Flush and release resources. Called by the hosting process on shutdown."""
        return None
