from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class WorkingHours:
    start: time
    end: time | None = None  # None means midnight at the end of the day

    def window(self, day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
        """Return the aware [start, end) window of these hours on ``day``."""
        window_start = datetime.combine(day, self.start, tzinfo=tz)
        if self.end is None:
            window_end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
        else:
            window_end = datetime.combine(day, self.end, tzinfo=tz)
        return window_start, window_end


FULL_DAY = WorkingHours(start=time(0))
