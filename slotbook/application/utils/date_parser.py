from __future__ import annotations

import re
from datetime import date, datetime, time

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

TIME_PATTERNS = [
    re.compile(r"^(\d{1,2}):(\d{2})$"),
    re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)$"),
]


def parse_booking_date(value: str | date) -> date | None:
    """Parse a YYYY-MM-DD calendar day. Returns date or None if not parseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _ISO_DATE.match(str(value).strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def parse_booking_time(text: str) -> time | None:
    """
    Parse a 24-hour "HH:MM" or 12-hour "h:MM AM" time of day.
    Returns time or None.
    """
    normalized = str(text).lower().strip()

    for pattern in TIME_PATTERNS:
        match = pattern.match(normalized)
        if not match:
            continue
        hour = int(match.group(1))
        minute = int(match.group(2))
        am_pm = match.group(3) if match.lastindex and match.lastindex >= 3 else None

        if am_pm is not None:
            if not 1 <= hour <= 12:
                return None
            if am_pm == "pm" and hour != 12:
                hour += 12
            elif am_pm == "am" and hour == 12:
                hour = 0

        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return time(hour, minute)
        return None

    return None


def format_time_label(value: time, time_format: str = "12") -> str:
    """Display label for a time of day, "9:30 AM" (12-hour) or "09:30" (24-hour)."""
    if time_format == "24":
        return f"{value.hour:02d}:{value.minute:02d}"
    display_hour = 12 if value.hour == 0 else value.hour - 12 if value.hour > 12 else value.hour
    period = "PM" if value.hour >= 12 else "AM"
    return f"{display_hour}:{value.minute:02d} {period}"
