from __future__ import annotations

import logging
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from fastapi import Request

from slotbook.application.ports.event_store import EventStorePort
from slotbook.application.use_cases.availability import AvailabilityUseCase
from slotbook.application.use_cases.booking import BookingUseCase
from slotbook.application.use_cases.events import CalendarEventsUseCase
from slotbook.application.utils.provider_locks import ProviderLocks
from slotbook.core.config import Settings
from slotbook.infrastructure.calendar.working_hours_policy import (
    StaticWorkingHoursPolicy,
    working_hours_from_settings,
)
from slotbook.infrastructure.store.json_store import JsonEventStore
from slotbook.infrastructure.store.memory_store import MemoryEventStore


@dataclass
class Container:
    store: EventStorePort
    availability: AvailabilityUseCase
    booking: BookingUseCase
    events: CalendarEventsUseCase

    def close(self) -> None:
        self.store.close()


def build_store(settings: Settings) -> EventStorePort:
    provider = settings.STORE_PROVIDER.lower()
    if provider == "memory":
        return MemoryEventStore()
    if provider == "json":
        return JsonEventStore(data_dir=settings.EVENT_STORE_DIR)
    raise ValueError(f"Unknown STORE_PROVIDER: {settings.STORE_PROVIDER}")


def build_container(settings: Settings, store: EventStorePort | None = None) -> Container:
    logger = logging.getLogger(__name__)
    store = store or build_store(settings)
    tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
    policy = StaticWorkingHoursPolicy(
        hours=working_hours_from_settings(settings.WORKING_HOURS_START, settings.WORKING_HOURS_END),
        working_days=settings.WORKING_DAYS,
    )
    availability = AvailabilityUseCase(
        store=store,
        timezone=tz,
        policy=policy,
        slot_duration_minutes=settings.SLOT_DURATION_MINUTES,
        time_format=settings.TIME_FORMAT,
    )
    booking = BookingUseCase(
        store=store,
        availability=availability,
        locks=ProviderLocks(timeout_seconds=settings.BOOKING_LOCK_TIMEOUT_SECONDS),
    )
    logger.info("Container built store=%s tz=%s", type(store).__name__, settings.BUSINESS_TIMEZONE)
    return Container(
        store=store,
        availability=availability,
        booking=booking,
        events=CalendarEventsUseCase(store=store, timezone=tz),
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_availability_use_case(request: Request) -> AvailabilityUseCase:
    return get_container(request).availability


def get_booking_use_case(request: Request) -> BookingUseCase:
    return get_container(request).booking


def get_events_use_case(request: Request) -> CalendarEventsUseCase:
    return get_container(request).events
