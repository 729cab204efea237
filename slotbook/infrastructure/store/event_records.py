from __future__ import annotations

from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from typing import Any

from slotbook.application.exceptions import ValidationError
from slotbook.domain.entities.event import IMMUTABLE_FIELDS, Event, EventDraft, EventType

EVENT_FIELDS = frozenset(f.name for f in fields(Event))
DATETIME_FIELDS = ("start_time", "end_time", "created_at", "updated_at")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_times(start_time: Any, end_time: Any) -> None:
    errors: dict[str, str] = {}
    for name, value in (("start_time", start_time), ("end_time", end_time)):
        if not isinstance(value, datetime):
            errors[name] = "must be a datetime"
        elif value.tzinfo is None:
            errors[name] = "must be timezone-aware"
    if errors:
        raise ValidationError("Invalid event times", errors)
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time", {"end_time": "must be after start_time"})


def build_event(event_id: int, draft: EventDraft, now: datetime) -> Event:
    validate_times(draft.start_time, draft.end_time)
    if not draft.user_id:
        raise ValidationError("user_id is required", {"user_id": "required"})
    event = Event(
        id=event_id,
        created_at=now,
        updated_at=now,
        **asdict(draft),
    )
    return _to_utc(event)


def _to_utc(event: Event) -> Event:
    # stored instants are UTC so comparisons never depend on wall-clock offsets
    return replace(
        event,
        start_time=event.start_time.astimezone(timezone.utc),
        end_time=event.end_time.astimezone(timezone.utc),
    )


def apply_changes(event: Event, changes: dict[str, Any], now: datetime) -> Event:
    """Merge ``changes`` into ``event``; re-validates the start/end invariant."""
    forbidden = sorted(set(changes) & IMMUTABLE_FIELDS)
    if forbidden:
        raise ValidationError("Immutable fields cannot be updated", {name: "immutable" for name in forbidden})
    unknown = sorted(set(changes) - EVENT_FIELDS)
    if unknown:
        raise ValidationError("Unknown event fields", {name: "unknown field" for name in unknown})

    merged = dict(changes)
    if "event_type" in merged and not isinstance(merged["event_type"], EventType):
        try:
            merged["event_type"] = EventType(merged["event_type"])
        except ValueError:
            raise ValidationError("Invalid event type", {"event_type": "unknown event type"}) from None

    updated = replace(event, **merged, updated_at=now)
    validate_times(updated.start_time, updated.end_time)
    return _to_utc(updated)


def event_to_record(event: Event) -> dict[str, Any]:
    record = asdict(event)
    record["event_type"] = event.event_type.value
    for name in DATETIME_FIELDS:
        record[name] = record[name].isoformat()
    return record


def event_from_record(record: dict[str, Any]) -> Event:
    data = {key: value for key, value in record.items() if key in EVENT_FIELDS}
    for name in DATETIME_FIELDS:
        data[name] = datetime.fromisoformat(data[name])
    data["event_type"] = EventType(data.get("event_type", EventType.busy.value))
    return Event(**data)


def sort_key(event: Event) -> tuple[datetime, int]:
    return (event.start_time, event.id)
