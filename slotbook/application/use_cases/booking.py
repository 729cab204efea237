from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from slotbook.application.exceptions import NotFound, ValidationError
from slotbook.application.ports.event_store import EventStorePort
from slotbook.application.use_cases.availability import AvailabilityUseCase
from slotbook.application.utils.date_parser import parse_booking_date, parse_booking_time
from slotbook.application.utils.provider_locks import ProviderLocks
from slotbook.domain.entities.booking_request import BookingRequest
from slotbook.domain.entities.event import Event, EventDraft, EventType

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

REQUIRED_FIELDS = ("provider_id", "date", "time", "client_name", "client_email", "client_phone")


@dataclass(frozen=True)
class BookingResult:
    status: str  # "confirmed" or "conflict"
    event: Event | None = None
    conflicts: list[Event] = field(default_factory=list)

    @property
    def is_conflict(self) -> bool:
        return self.status == "conflict"


class BookingUseCase:
    """
    The only writer path for booking-originated events.

    Every commit (book, reschedule, cancel) runs the overlap check and the
    store write inside the provider's exclusive section, so two overlapping
    requests for the same provider can never both be confirmed.
    """

    def __init__(
        self,
        store: EventStorePort,
        availability: AvailabilityUseCase,
        locks: ProviderLocks,
    ) -> None:
        self._store = store
        self._availability = availability
        self._locks = locks
        self._logger = logging.getLogger(__name__)

    def book(self, request: BookingRequest) -> BookingResult:
        self._validate_request(request)
        start, end = self._resolve_interval(request.provider_id, request.date, request.time, request.duration)

        draft = EventDraft(
            user_id=request.provider_id,
            title=f"{request.service_name or 'Booking'} with {request.client_name}",
            start_time=start,
            end_time=end,
            event_type=EventType.booking,
            location=request.location,
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            notes=request.notes,
            is_confirmed=True,
        )

        with self._locks.hold(request.provider_id):
            conflicts = self._blocking(request.provider_id, start, end)
            if conflicts:
                return self._conflict(request.provider_id, start, end, conflicts)
            event = self._store.create(draft)

        self._logger.info(
            "Booking confirmed",
            extra={
                "provider_id": event.user_id,
                "event_id": event.id,
                "start": event.start_time.isoformat(),
                "end": event.end_time.isoformat(),
            },
        )
        return BookingResult(status="confirmed", event=event)

    def reschedule(
        self,
        event_id: int,
        new_date: str,
        new_time: str,
        duration: int | None = None,
    ) -> BookingResult:
        current = self._store.get(event_id)
        if current.event_type != EventType.booking:
            raise ValidationError("Only bookings can be rescheduled", {"id": "not a booking"})

        if duration is None:
            duration = int((current.end_time - current.start_time).total_seconds() // 60)
        self._require_positive_duration(duration)
        start, end = self._resolve_interval(current.user_id, new_date, new_time, duration)

        with self._locks.hold(current.user_id):
            conflicts = self._blocking(current.user_id, start, end, exclude_id=event_id)
            if conflicts:
                return self._conflict(current.user_id, start, end, conflicts)
            event = self._store.update(event_id, {"start_time": start, "end_time": end})

        self._logger.info(
            "Booking rescheduled",
            extra={"provider_id": event.user_id, "event_id": event.id, "start": event.start_time.isoformat()},
        )
        return BookingResult(status="confirmed", event=event)

    def cancel(self, event_id: int) -> Event:
        event = self._store.get(event_id)
        if event.event_type != EventType.booking:
            raise ValidationError("Only bookings can be cancelled here", {"id": "not a booking"})

        with self._locks.hold(event.user_id):
            if not self._store.delete(event_id):
                raise NotFound(f"Event {event_id} not found")

        self._logger.info("Booking cancelled", extra={"provider_id": event.user_id, "event_id": event_id})
        return event

    def list_bookings(self, provider_id: str) -> list[Event]:
        return [
            event
            for event in self._store.list_by_provider(provider_id)
            if event.event_type == EventType.booking
        ]

    def _blocking(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None,
    ) -> list[Event]:
        return [
            event
            for event in self._store.find_overlapping(provider_id, start, end, exclude_id=exclude_id)
            if event.blocks_time
        ]

    def _conflict(self, provider_id: str, start: datetime, end: datetime, conflicts: list[Event]) -> BookingResult:
        self._logger.info(
            "Booking conflict",
            extra={
                "provider_id": provider_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "reason": "slot_unavailable",
            },
        )
        return BookingResult(status="conflict", conflicts=conflicts)

    def _validate_request(self, request: BookingRequest) -> None:
        errors: dict[str, str] = {}
        for name in REQUIRED_FIELDS:
            value = getattr(request, name)
            if value is None or not str(value).strip():
                errors[name] = "required"

        if "client_email" not in errors and not EMAIL_PATTERN.match(request.client_email.strip()):
            errors["client_email"] = "must be a valid email address"

        if isinstance(request.duration, bool) or not isinstance(request.duration, int) or request.duration <= 0:
            errors["duration"] = "must be greater than 0"

        if errors:
            raise ValidationError("Invalid booking request", errors)

    def _require_positive_duration(self, duration: int) -> None:
        if duration <= 0:
            raise ValidationError("Invalid booking request", {"duration": "must be greater than 0"})

    def _resolve_interval(
        self,
        provider_id: str,
        raw_date: str,
        raw_time: str,
        duration: int,
    ) -> tuple[datetime, datetime]:
        """Combine date and time in the business timezone and check it against the working-hours grid."""
        day = parse_booking_date(raw_date)
        start_of_day = parse_booking_time(raw_time)
        errors: dict[str, str] = {}
        if day is None:
            errors["date"] = "must be a calendar day in YYYY-MM-DD format"
        if start_of_day is None:
            errors["time"] = "must be HH:MM"
        if errors:
            raise ValidationError("Invalid booking request", errors)

        start = datetime.combine(day, start_of_day, tzinfo=self._availability.timezone).astimezone(timezone.utc)
        end = start + timedelta(minutes=duration)

        window = self._availability.resolve_window(provider_id, day)
        if window is None:
            raise ValidationError("Provider does not take bookings on this day", {"date": "outside working days"})
        window_start = window[0].astimezone(timezone.utc)
        window_end = window[1].astimezone(timezone.utc)
        if start < window_start or end > window_end:
            raise ValidationError("Requested time is outside working hours", {"time": "outside working hours"})

        granularity = timedelta(minutes=self._availability.granularity_minutes)
        if (start - window_start) % granularity:
            raise ValidationError(
                "Requested time does not match an offered slot",
                {"time": f"must align to {self._availability.granularity_minutes}-minute slots"},
            )
        return start, end
