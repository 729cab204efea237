"""
Tests for free-slot calculation.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from slotbook.application.exceptions import ValidationError
from slotbook.application.use_cases.availability import AvailabilityUseCase
from slotbook.domain.entities.event import EventDraft, EventType
from slotbook.domain.entities.working_hours import WorkingHours
from slotbook.infrastructure.calendar.working_hours_policy import StaticWorkingHoursPolicy
from slotbook.infrastructure.store.memory_store import MemoryEventStore

UTC = timezone.utc
MONDAY = date(2026, 3, 2)
MORNING = WorkingHours(start=time(9, 0), end=time(12, 0))


def _availability(
    store: MemoryEventStore,
    hours: WorkingHours | None = MORNING,
    working_days: list[int] | None = None,
    tz: ZoneInfo = ZoneInfo("UTC"),
    time_format: str = "12",
) -> AvailabilityUseCase:
    policy = StaticWorkingHoursPolicy(hours=hours, working_days=working_days) if hours else None
    return AvailabilityUseCase(store=store, timezone=tz, policy=policy, time_format=time_format)


def _block(store: MemoryEventStore, start: str, end: str, provider: str = "p1", **kwargs) -> None:
    store.create(
        EventDraft(
            user_id=provider,
            title=kwargs.pop("title", "Booked"),
            start_time=datetime.combine(MONDAY, time.fromisoformat(start), tzinfo=UTC),
            end_time=datetime.combine(MONDAY, time.fromisoformat(end), tzinfo=UTC),
            **kwargs,
        )
    )


def test_existing_event_removes_its_slot():
    """09:00-12:00 in 30 minute slots with 10:00-10:30 taken leaves five slots."""
    store = MemoryEventStore()
    _block(store, "10:00", "10:30")

    slots = _availability(store).find_available_slots("p1", MONDAY)

    assert [slot.time for slot in slots] == ["09:00", "09:30", "10:30", "11:00", "11:30"]
    assert [slot.formatted for slot in slots][:2] == ["9:00 AM", "9:30 AM"]
    assert all(slot.end - slot.start == timedelta(minutes=30) for slot in slots)


def test_no_events_returns_every_candidate():
    slots = _availability(MemoryEventStore()).find_available_slots("p1", "2026-03-02")

    assert len(slots) == 6
    assert slots[0].time == "09:00"
    assert slots[-1].time == "11:30"


def test_no_policy_defaults_to_full_day():
    slots = _availability(MemoryEventStore(), hours=None).find_available_slots("p1", MONDAY)

    assert len(slots) == 48
    assert slots[0].time == "00:00"
    assert slots[-1].time == "23:30"
    assert slots[-1].formatted == "11:30 PM"


def test_fully_booked_day_is_empty_not_an_error():
    store = MemoryEventStore()
    _block(store, "08:00", "13:00")

    assert _availability(store).find_available_slots("p1", MONDAY) == []


def test_back_to_back_events_keep_adjacent_slots():
    store = MemoryEventStore()
    _block(store, "09:30", "10:00")
    _block(store, "10:00", "10:30")

    slots = _availability(store).find_available_slots("p1", MONDAY)

    assert [slot.time for slot in slots] == ["09:00", "10:30", "11:00", "11:30"]


def test_events_of_other_providers_are_ignored():
    store = MemoryEventStore()
    _block(store, "09:00", "12:00", provider="someone-else")

    assert len(_availability(store).find_available_slots("p1", MONDAY)) == 6


def test_available_markers_do_not_block():
    store = MemoryEventStore()
    _block(store, "09:00", "12:00", event_type=EventType.available)
    _block(store, "11:00", "11:30", event_type=EventType.travel)

    slots = _availability(store).find_available_slots("p1", MONDAY)

    assert [slot.time for slot in slots] == ["09:00", "09:30", "10:00", "10:30", "11:30"]


def test_longer_service_on_finer_grid():
    store = MemoryEventStore()
    _block(store, "10:00", "10:30")

    slots = _availability(store).find_available_slots("p1", MONDAY, slot_duration=60, granularity=30)

    assert [slot.time for slot in slots] == ["09:00", "10:30", "11:00"]


def test_longer_service_keeps_the_configured_grid():
    slots = _availability(MemoryEventStore()).find_available_slots("p1", MONDAY, slot_duration=45)

    assert [slot.time for slot in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00"]
    assert all(slot.end - slot.start == timedelta(minutes=45) for slot in slots)


def test_nested_events_are_respected():
    store = MemoryEventStore()
    _block(store, "09:00", "11:00", title="workshop")
    _block(store, "09:30", "10:00", title="call inside workshop")

    slots = _availability(store).find_available_slots("p1", MONDAY)

    assert [slot.time for slot in slots] == ["11:00", "11:30"]


def test_free_and_busy_slots_cover_window_exactly():
    store = MemoryEventStore()
    _block(store, "09:15", "09:45")
    _block(store, "11:00", "11:30")
    use_case = _availability(store)

    candidates = use_case.candidate_slots("p1", MONDAY)
    events = store.list_by_provider("p1")

    assert candidates[0][0].start == datetime.combine(MONDAY, time(9), tzinfo=UTC)
    assert candidates[-1][0].end == datetime.combine(MONDAY, time(12), tzinfo=UTC)
    for (previous, _), (following, _) in zip(candidates, candidates[1:]):
        assert previous.end == following.start

    total = sum(((slot.end - slot.start) for slot, _ in candidates), timedelta())
    assert total == timedelta(hours=3)

    for slot, is_free in candidates:
        touches_event = any(event.overlaps(slot.start, slot.end) for event in events)
        assert is_free is not touches_event

    free = [slot for slot, is_free in candidates if is_free]
    assert free == use_case.find_available_slots("p1", MONDAY)


def test_repeated_queries_are_identical():
    store = MemoryEventStore()
    _block(store, "10:00", "10:30")
    use_case = _availability(store)

    assert use_case.find_available_slots("p1", MONDAY) == use_case.find_available_slots("p1", MONDAY)


def test_day_off_has_no_slots():
    use_case = _availability(MemoryEventStore(), working_days=[0, 1, 2, 3, 4])

    assert use_case.find_available_slots("p1", date(2026, 3, 7)) == []
    assert len(use_case.find_available_slots("p1", MONDAY)) == 6


def test_labels_follow_business_timezone_and_format():
    tz = ZoneInfo("America/New_York")
    use_case = _availability(
        MemoryEventStore(),
        hours=WorkingHours(start=time(13, 0), end=time(14, 0)),
        tz=tz,
        time_format="24",
    )

    slots = use_case.find_available_slots("p1", MONDAY)

    assert [slot.time for slot in slots] == ["13:00", "13:30"]
    assert [slot.formatted for slot in slots] == ["13:00", "13:30"]
    assert slots[0].start == datetime(2026, 3, 2, 18, 0, tzinfo=UTC)


def test_explicit_working_hours_override_policy():
    use_case = _availability(MemoryEventStore())

    slots = use_case.find_available_slots("p1", MONDAY, working_hours=WorkingHours(start=time(15), end=time(16)))

    assert [slot.time for slot in slots] == ["15:00", "15:30"]


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_is_rejected(duration):
    with pytest.raises(ValidationError) as exc_info:
        _availability(MemoryEventStore()).find_available_slots("p1", MONDAY, slot_duration=duration)
    assert "duration" in exc_info.value.fields


@pytest.mark.parametrize("raw_date", ["2026-13-01", "tomorrow", "02/03/2026", ""])
def test_unparseable_date_is_rejected(raw_date):
    with pytest.raises(ValidationError) as exc_info:
        _availability(MemoryEventStore()).find_available_slots("p1", raw_date)
    assert "date" in exc_info.value.fields
