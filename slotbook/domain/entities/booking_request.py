from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BookingRequest:
    provider_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM, "h:MM AM" is accepted too
    duration: int  # minutes
    client_name: str
    client_email: str
    client_phone: str
    notes: str | None = None
    location: str | None = None
    service_name: str | None = None
