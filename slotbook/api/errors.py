from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_snake

from slotbook.application.exceptions import NotFound, SchedulingError, StoreUnavailable, ValidationError
from slotbook.application.use_cases.booking import BookingResult

logger = logging.getLogger(__name__)


def error_detail(error: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"error": error, "message": message, **extra}


def to_http_exception(exc: SchedulingError) -> HTTPException:
    """Map a core error to the HTTP error the UI understands."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=error_detail("validation_error", exc.message, fields=exc.fields))
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=error_detail("not_found", str(exc)))
    if isinstance(exc, StoreUnavailable):
        logger.warning("Store unavailable", extra={"error": str(exc)})
        return HTTPException(
            status_code=503,
            detail=error_detail("store_unavailable", "Calendar is temporarily unavailable, please retry"),
            headers={"Retry-After": "1"},
        )
    logger.error("Unhandled scheduling error", extra={"error": str(exc)})
    return HTTPException(status_code=500, detail=error_detail("internal_error", "Booking failed"))


def conflict_exception(result: BookingResult) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=error_detail(
            "slot_unavailable",
            "This time slot is no longer available. Please choose another time.",
            conflicts=[
                {"startTime": event.start_time.isoformat(), "endTime": event.end_time.isoformat()}
                for event in result.conflicts
            ],
        ),
    )


def request_validation_fields(exc: RequestValidationError) -> dict[str, str]:
    fields: dict[str, str] = {}
    for error in exc.errors():
        path = [to_snake(str(part)) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.setdefault(".".join(path) or "body", error.get("msg", "invalid"))
    return fields


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Requests that fail schema parsing get the same 422 body as core validation errors."""
    return JSONResponse(
        status_code=422,
        content={"detail": error_detail("validation_error", "Invalid request", fields=request_validation_fields(exc))},
    )
