from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from slotbook.application.exceptions import ValidationError
from slotbook.application.ports.event_store import EventStorePort
from slotbook.application.ports.working_hours import WorkingHoursPolicyPort
from slotbook.application.utils.date_parser import format_time_label, parse_booking_date
from slotbook.domain.entities.event import Event
from slotbook.domain.entities.time_slot import TimeSlot
from slotbook.domain.entities.working_hours import FULL_DAY, WorkingHours


class AvailabilityUseCase:
    """
    Read-only view of a provider's free time.

    Candidate slots are generated across the day's working-hours window and
    every candidate that intersects a blocking event is dropped. Nothing here
    writes to the store, so queries may run with unlimited concurrency.
    """

    def __init__(
        self,
        store: EventStorePort,
        timezone: ZoneInfo,
        policy: WorkingHoursPolicyPort | None = None,
        slot_duration_minutes: int = 30,
        time_format: str = "12",
    ) -> None:
        self._store = store
        self._timezone = timezone
        self._policy = policy
        self._slot_duration_minutes = slot_duration_minutes
        self._time_format = time_format
        self._logger = logging.getLogger(__name__)

    @property
    def timezone(self) -> ZoneInfo:
        return self._timezone

    @property
    def granularity_minutes(self) -> int:
        """Step between advertised slot starts."""
        return self._slot_duration_minutes

    def resolve_window(
        self,
        provider_id: str,
        day: date,
        working_hours: WorkingHours | None = None,
    ) -> tuple[datetime, datetime] | None:
        """The [start, end) window slots may be offered in, or None on a day off."""
        if working_hours is None:
            if self._policy is None:
                working_hours = FULL_DAY
            else:
                working_hours = self._policy.hours_for(provider_id, day)
                if working_hours is None:
                    return None
        return working_hours.window(day, self._timezone)

    def find_available_slots(
        self,
        provider_id: str,
        day: date | str,
        slot_duration: int | None = None,
        granularity: int | None = None,
        working_hours: WorkingHours | None = None,
    ) -> list[TimeSlot]:
        """Ordered free slots. An empty list means the day is fully booked (or a day off)."""
        return [
            slot
            for slot, is_free in self._walk(provider_id, day, slot_duration, granularity, working_hours)
            if is_free
        ]

    def candidate_slots(
        self,
        provider_id: str,
        day: date | str,
        slot_duration: int | None = None,
        granularity: int | None = None,
        working_hours: WorkingHours | None = None,
    ) -> list[tuple[TimeSlot, bool]]:
        """Every candidate slot of the window paired with whether it is free."""
        return list(self._walk(provider_id, day, slot_duration, granularity, working_hours))

    def _walk(
        self,
        provider_id: str,
        day: date | str,
        slot_duration: int | None,
        granularity: int | None,
        working_hours: WorkingHours | None,
    ) -> list[tuple[TimeSlot, bool]]:
        parsed_day, duration, step = self._validate(day, slot_duration, granularity)

        window = self.resolve_window(provider_id, parsed_day, working_hours)
        if window is None:
            self._logger.info("Provider not working", extra={"provider_id": provider_id, "reason": "day_off"})
            return []

        window_start = window[0].astimezone(timezone.utc)
        window_end = window[1].astimezone(timezone.utc)
        events = [
            event
            for event in self._store.list_by_provider(provider_id, window_start, window_end)
            if event.blocks_time
        ]

        results: list[tuple[TimeSlot, bool]] = []
        pointer = 0
        current = window_start
        while current + duration <= window_end:
            slot_end = current + duration

            # events ending at or before this slot can never touch a later one
            while pointer < len(events) and events[pointer].end_time <= current:
                pointer += 1

            results.append((self._make_slot(current, slot_end), not _any_overlap(events, pointer, current, slot_end)))
            current += step

        return results

    def _validate(
        self,
        day: date | str,
        slot_duration: int | None,
        granularity: int | None,
    ) -> tuple[date, timedelta, timedelta]:
        errors: dict[str, str] = {}

        parsed_day = parse_booking_date(day)
        if parsed_day is None:
            errors["date"] = "must be a calendar day in YYYY-MM-DD format"

        duration = self._slot_duration_minutes if slot_duration is None else slot_duration
        if duration <= 0:
            errors["duration"] = "must be greater than 0"

        step = self._slot_duration_minutes if granularity is None else granularity
        if step <= 0:
            errors["granularity"] = "must be greater than 0"

        if errors:
            raise ValidationError("Invalid availability query", errors)
        return parsed_day, timedelta(minutes=duration), timedelta(minutes=step)

    def _make_slot(self, start: datetime, end: datetime) -> TimeSlot:
        local_time = start.astimezone(self._timezone).time()
        return TimeSlot(
            start=start.astimezone(self._timezone),
            end=end.astimezone(self._timezone),
            time=f"{local_time.hour:02d}:{local_time.minute:02d}",
            formatted=format_time_label(local_time, self._time_format),
        )


def _any_overlap(events: list[Event], pointer: int, start: datetime, end: datetime) -> bool:
    for index in range(pointer, len(events)):
        event = events[index]
        if event.start_time >= end:
            return False
        if event.overlaps(start, end):
            return True
    return False
