from fastapi import APIRouter, Depends, Query, Response

from slotbook.api.errors import conflict_exception, to_http_exception
from slotbook.api.v1.schemas import (
    BookingRequestSchema,
    BookingResponseSchema,
    RescheduleRequestSchema,
    TimeSlotSchema,
)
from slotbook.application.exceptions import SchedulingError
from slotbook.application.use_cases.availability import AvailabilityUseCase
from slotbook.application.use_cases.booking import BookingUseCase
from slotbook.domain.entities.booking_request import BookingRequest
from slotbook.wiring.dependencies import get_availability_use_case, get_booking_use_case

router = APIRouter()


@router.get("/available-slots", response_model=list[TimeSlotSchema])
def available_slots(
    date: str = Query(...),
    provider_id: str = Query(..., alias="providerId"),
    duration: int | None = Query(None),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        slots = uc.find_available_slots(provider_id, date, slot_duration=duration)
    except SchedulingError as e:
        raise to_http_exception(e)

    return [TimeSlotSchema.from_slot(slot) for slot in slots]


@router.post("", status_code=201, response_model=BookingResponseSchema)
def create_booking(
    req: BookingRequestSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        result = uc.book(BookingRequest(**req.model_dump()))
    except SchedulingError as e:
        raise to_http_exception(e)

    if result.is_conflict:
        raise conflict_exception(result)
    return BookingResponseSchema.from_event(result.event)


@router.get("/provider/{provider_id}", response_model=list[BookingResponseSchema])
def provider_bookings(
    provider_id: str,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        events = uc.list_bookings(provider_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return [BookingResponseSchema.from_event(event) for event in events]


@router.patch("/{booking_id}", response_model=BookingResponseSchema)
def reschedule_booking(
    booking_id: int,
    req: RescheduleRequestSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        result = uc.reschedule(booking_id, req.new_date, req.new_time, duration=req.duration)
    except SchedulingError as e:
        raise to_http_exception(e)

    if result.is_conflict:
        raise conflict_exception(result)
    return BookingResponseSchema.from_event(result.event)


@router.delete("/{booking_id}", status_code=204)
def cancel_booking(
    booking_id: int,
    uc: BookingUseCase = Depends(get_booking_use_case),
) -> Response:
    try:
        uc.cancel(booking_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    return Response(status_code=204)
