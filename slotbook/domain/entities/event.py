from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EventType(str, Enum):
    booking = "booking"
    block = "block"
    meeting = "meeting"
    task = "task"
    busy = "busy"
    private = "private"
    travel = "travel"
    available = "available"


@dataclass(frozen=True)
class EventDraft:
    """Event fields supplied by the caller; the store assigns id and timestamps."""

    user_id: str
    title: str
    start_time: datetime
    end_time: datetime
    event_type: EventType = EventType.busy
    description: str | None = None
    location: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    is_confirmed: bool = False
    color: str | None = None


@dataclass(frozen=True)
class Event:
    id: int
    user_id: str
    title: str
    start_time: datetime
    end_time: datetime
    created_at: datetime
    updated_at: datetime
    event_type: EventType = EventType.busy
    description: str | None = None
    location: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    is_confirmed: bool = False
    color: str | None = None

    @property
    def blocks_time(self) -> bool:
        # "available" entries mark open time, they are not commitments
        return self.event_type != EventType.available

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_time < end and start < self.end_time


# fields an update may never touch
IMMUTABLE_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})
