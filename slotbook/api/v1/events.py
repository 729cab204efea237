from fastapi import APIRouter, Depends, Query, Response

from slotbook.api.errors import to_http_exception
from slotbook.api.v1.schemas import EventCreateSchema, EventSchema, EventUpdateSchema
from slotbook.application.exceptions import SchedulingError
from slotbook.application.use_cases.events import CalendarEventsUseCase
from slotbook.core.config import settings
from slotbook.domain.entities.event import EventDraft
from slotbook.wiring.dependencies import get_events_use_case

router = APIRouter()


@router.get("", response_model=list[EventSchema])
def list_events(
    user_id: str | None = Query(None, alias="userId"),
    uc: CalendarEventsUseCase = Depends(get_events_use_case),
):
    try:
        events = uc.list_events(user_id or settings.DEFAULT_PROVIDER_ID)
    except SchedulingError as e:
        raise to_http_exception(e)

    return [EventSchema.from_event(event) for event in events]


@router.get("/{event_id}", response_model=EventSchema)
def get_event(
    event_id: int,
    uc: CalendarEventsUseCase = Depends(get_events_use_case),
):
    try:
        event = uc.get_event(event_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return EventSchema.from_event(event)


@router.post("", status_code=201, response_model=EventSchema)
def create_event(
    req: EventCreateSchema,
    uc: CalendarEventsUseCase = Depends(get_events_use_case),
):
    try:
        event = uc.create_event(
            EventDraft(
                user_id=req.user_id or settings.DEFAULT_PROVIDER_ID,
                title=req.title or "",
                description=req.description or None,
                start_time=req.start_time,
                end_time=req.end_time,
                location=req.location or None,
                client_name=req.client_name or None,
                is_confirmed=req.is_confirmed,
                event_type=req.event_type,
                color=req.color or None,
            )
        )
    except SchedulingError as e:
        raise to_http_exception(e)

    return EventSchema.from_event(event)


@router.patch("/{event_id}", response_model=EventSchema)
def update_event(
    event_id: int,
    req: EventUpdateSchema,
    uc: CalendarEventsUseCase = Depends(get_events_use_case),
):
    try:
        event = uc.update_event(event_id, req.model_dump(exclude_unset=True))
    except SchedulingError as e:
        raise to_http_exception(e)

    return EventSchema.from_event(event)


@router.delete("/{event_id}", status_code=204)
def delete_event(
    event_id: int,
    uc: CalendarEventsUseCase = Depends(get_events_use_case),
) -> Response:
    try:
        uc.delete_event(event_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return Response(status_code=204)
