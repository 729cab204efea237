#!/usr/bin/env python3
"""Smoke test for a running booking API (uvicorn slotbook.main:app --port 8001)."""

import sys
from datetime import date, timedelta

import httpx


BASE_URL = "http://127.0.0.1:8001"
PROVIDER_ID = "user-1"


def fetch_slots(day: str) -> list[dict]:
    print("=" * 60)
    print(f"GET /api/bookings/available-slots date={day}")
    print("=" * 60)

    response = httpx.get(
        f"{BASE_URL}/api/bookings/available-slots",
        params={"date": day, "providerId": PROVIDER_ID},
        timeout=10.0,
    )
    response.raise_for_status()
    slots = response.json()
    print(f"{len(slots)} free slots: {', '.join(slot['formatted'] for slot in slots[:8])}")
    return slots


def book(day: str, slot: dict) -> int | None:
    print("\n" + "=" * 60)
    print(f"POST /api/bookings {day} {slot['time']}")
    print("=" * 60)

    payload = {
        "providerId": PROVIDER_ID,
        "date": day,
        "time": slot["time"],
        "duration": 30,
        "clientName": "Smoke Test",
        "clientEmail": "smoke@example.com",
        "clientPhone": "+1 555 0100",
        "notes": "created by scripts/smoke_api.py",
    }

    response = httpx.post(f"{BASE_URL}/api/bookings", json=payload, timeout=10.0)
    if response.status_code != 201:
        print(f"Booking failed: {response.status_code} {response.text}")
        return None
    booking = response.json()
    print(f"Booked #{booking['id']} {booking['startTime']} -> {booking['endTime']}")

    again = httpx.post(f"{BASE_URL}/api/bookings", json=payload, timeout=10.0)
    print(f"Repeat booking returned {again.status_code} ({again.json()['detail']['error']})")
    return booking["id"]


def cancel(booking_id: int) -> None:
    response = httpx.delete(f"{BASE_URL}/api/bookings/{booking_id}", timeout=10.0)
    print(f"\nDELETE /api/bookings/{booking_id} -> {response.status_code}")


def main():
    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0).raise_for_status()
    except httpx.HTTPError:
        print("Server is not running!")
        print("   Please start it with: uvicorn slotbook.main:app --reload --port 8001")
        sys.exit(1)

    day = (date.today() + timedelta(days=1)).isoformat()
    slots = fetch_slots(day)
    if not slots:
        print("No free slots, nothing to book.")
        return

    booking_id = book(day, slots[0])
    if booking_id is not None:
        fetch_slots(day)
        cancel(booking_id)


if __name__ == "__main__":
    main()
