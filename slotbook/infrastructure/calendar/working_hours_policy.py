from __future__ import annotations

from datetime import date

from slotbook.application.exceptions import ValidationError
from slotbook.application.ports.working_hours import WorkingHoursPolicyPort
from slotbook.application.utils.date_parser import parse_booking_time
from slotbook.domain.entities.working_hours import FULL_DAY, WorkingHours


class StaticWorkingHoursPolicy(WorkingHoursPolicyPort):
    """Same hours for every provider on each working weekday."""

    def __init__(self, hours: WorkingHours = FULL_DAY, working_days: list[int] | None = None) -> None:
        self._hours = hours
        self._working_days = frozenset(range(7) if working_days is None else working_days)

    def hours_for(self, provider_id: str, day: date) -> WorkingHours | None:
        if day.weekday() not in self._working_days:
            return None
        return self._hours


def working_hours_from_settings(start: str | None, end: str | None) -> WorkingHours:
    """Build WorkingHours from "HH:MM" settings. Both unset gives the full day."""
    if not start and not end:
        return FULL_DAY

    start_time = parse_booking_time(start) if start else FULL_DAY.start
    end_time = parse_booking_time(end) if end else None
    if start_time is None or (end and end_time is None):
        raise ValidationError(
            "Working hours must use HH:MM",
            {"WORKING_HOURS_START": str(start), "WORKING_HOURS_END": str(end)},
        )
    if end_time is not None and end_time <= start_time:
        raise ValidationError("Working hours must end after they start", {"WORKING_HOURS_END": str(end)})
    return WorkingHours(start=start_time, end=end_time)
