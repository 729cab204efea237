from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from slotbook.domain.entities.event import Event, EventType
from slotbook.domain.entities.time_slot import TimeSlot


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSlotSchema(CamelModel):
    time: str
    formatted: str
    start: datetime
    end: datetime

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotSchema":
        return cls(time=slot.time, formatted=slot.formatted, start=slot.start, end=slot.end)


class BookingRequestSchema(CamelModel):
    provider_id: str
    date: str
    time: str
    duration: int
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    location: str | None = None
    service_name: str | None = None

    @field_validator("provider_id", mode="before")
    @classmethod
    def _provider_id_as_text(cls, value: object) -> object:
        # the booking widget sends numeric ids for some providers
        return str(value) if isinstance(value, int) else value


class RescheduleRequestSchema(CamelModel):
    new_date: str
    new_time: str
    duration: int | None = None


class BookingResponseSchema(CamelModel):
    id: int
    provider_id: str
    title: str
    start_time: datetime
    end_time: datetime
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    location: str | None = None
    status: str = "confirmed"
    created_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "BookingResponseSchema":
        return cls(
            id=event.id,
            provider_id=event.user_id,
            title=event.title,
            start_time=event.start_time,
            end_time=event.end_time,
            client_name=event.client_name,
            client_email=event.client_email,
            client_phone=event.client_phone,
            notes=event.notes,
            location=event.location,
            status="confirmed" if event.is_confirmed else "pending",
            created_at=event.created_at,
        )


class EventSchema(CamelModel):
    id: int
    user_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    is_confirmed: bool = False
    event_type: EventType
    color: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "EventSchema":
        return cls(**event.__dict__)


class EventCreateSchema(CamelModel):
    user_id: str | None = None
    title: str | None = None
    description: str | None = None
    start_time: datetime
    end_time: datetime
    location: str | None = None
    client_name: str | None = None
    is_confirmed: bool = False
    event_type: EventType = EventType.busy
    color: str | None = None


class EventUpdateSchema(CamelModel):
    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = None
    client_name: str | None = None
    is_confirmed: bool | None = None
    event_type: EventType | None = None
    color: str | None = None
