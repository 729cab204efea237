"""
Tests for the event stores (in-memory and durable JSON).
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from slotbook.application.exceptions import NotFound, StoreUnavailable, ValidationError
from slotbook.domain.entities.event import EventDraft, EventType
from slotbook.infrastructure.store.json_store import JsonEventStore
from slotbook.infrastructure.store.memory_store import MemoryEventStore

UTC = timezone.utc
DAY = datetime(2026, 3, 2, tzinfo=UTC)


def _draft(provider: str, start_hour: float, end_hour: float, **kwargs) -> EventDraft:
    return EventDraft(
        user_id=provider,
        title=kwargs.pop("title", "Focus block"),
        start_time=DAY + timedelta(hours=start_hour),
        end_time=DAY + timedelta(hours=end_hour),
        **kwargs,
    )


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryEventStore()
    else:
        json_store = JsonEventStore(data_dir=str(tmp_path / "events"))
        yield json_store
        json_store.close()


def test_create_assigns_identity_and_timestamps(store):
    first = store.create(_draft("p1", 9, 10))
    second = store.create(_draft("p1", 11, 12))

    assert first.id >= 1
    assert second.id > first.id
    assert first.created_at == first.updated_at
    assert first.user_id == "p1"
    assert first.event_type == EventType.busy


def test_create_rejects_inverted_or_empty_interval(store):
    with pytest.raises(ValidationError):
        store.create(_draft("p1", 10, 10))
    with pytest.raises(ValidationError) as exc_info:
        store.create(_draft("p1", 11, 10))
    assert "end_time" in exc_info.value.fields
    assert store.list_by_provider("p1") == []


def test_create_rejects_naive_datetimes(store):
    draft = EventDraft(
        user_id="p1",
        title="Naive",
        start_time=datetime(2026, 3, 2, 9, 0),
        end_time=datetime(2026, 3, 2, 10, 0),
    )
    with pytest.raises(ValidationError) as exc_info:
        store.create(draft)
    assert exc_info.value.fields["start_time"] == "must be timezone-aware"


def test_instants_are_stored_in_utc(store):
    tz = ZoneInfo("America/New_York")
    start = datetime(2026, 3, 2, 9, 0, tzinfo=tz)
    event = store.create(EventDraft(user_id="p1", title="Call", start_time=start, end_time=start + timedelta(hours=1)))

    assert event.start_time == start
    assert event.start_time.utcoffset() == timedelta(0)
    assert store.get(event.id).start_time == start


def test_get_missing_event_raises_not_found(store):
    with pytest.raises(NotFound):
        store.get(999)


def test_list_by_provider_is_ordered_and_scoped(store):
    store.create(_draft("p1", 14, 15, title="late"))
    store.create(_draft("p1", 9, 10, title="early"))
    store.create(_draft("p2", 8, 9, title="other provider"))
    store.create(_draft("p1", 11, 12, title="middle"))

    titles = [event.title for event in store.list_by_provider("p1")]

    assert titles == ["early", "middle", "late"]
    assert [event.title for event in store.list_by_provider("p2")] == ["other provider"]
    assert store.list_by_provider("nobody") == []


def test_list_by_provider_restricted_to_window(store):
    store.create(_draft("p1", 8, 9))
    inside = store.create(_draft("p1", 9.5, 10))
    straddling = store.create(_draft("p1", 11.5, 12.5))
    store.create(_draft("p1", 12, 13))

    events = store.list_by_provider("p1", DAY + timedelta(hours=9), DAY + timedelta(hours=12))

    assert [event.id for event in events] == [inside.id, straddling.id]


def test_update_merges_fields_and_refreshes_updated_at(store):
    event = store.create(_draft("p1", 9, 10))

    updated = store.update(event.id, {"title": "Moved", "end_time": DAY + timedelta(hours=11)})

    assert updated.title == "Moved"
    assert updated.start_time == event.start_time
    assert updated.end_time == DAY + timedelta(hours=11)
    assert updated.created_at == event.created_at
    assert updated.updated_at >= event.updated_at
    assert store.get(event.id) == updated


def test_update_revalidates_interval(store):
    event = store.create(_draft("p1", 9, 10))

    with pytest.raises(ValidationError):
        store.update(event.id, {"start_time": DAY + timedelta(hours=10, minutes=30)})

    assert store.get(event.id) == event


def test_update_cannot_change_provider_or_identity(store):
    event = store.create(_draft("p1", 9, 10))

    with pytest.raises(ValidationError) as exc_info:
        store.update(event.id, {"user_id": "p2"})
    assert exc_info.value.fields == {"user_id": "immutable"}

    with pytest.raises(ValidationError):
        store.update(event.id, {"id": 42})


def test_update_missing_event_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update(404, {"title": "nope"})


def test_delete_reports_existence_and_ids_are_not_reused(store):
    event = store.create(_draft("p1", 9, 10))

    assert store.delete(event.id) is True
    assert store.delete(event.id) is False
    with pytest.raises(NotFound):
        store.get(event.id)

    replacement = store.create(_draft("p1", 9, 10))
    assert replacement.id > event.id


def test_find_overlapping_uses_half_open_intervals(store):
    booked = store.create(_draft("p1", 10, 10.5))
    store.create(_draft("p2", 10, 10.5))

    def overlapping(start_hour: float, end_hour: float, exclude_id=None):
        return store.find_overlapping(
            "p1",
            DAY + timedelta(hours=start_hour),
            DAY + timedelta(hours=end_hour),
            exclude_id=exclude_id,
        )

    assert [event.id for event in overlapping(10, 10.5)] == [booked.id]
    assert [event.id for event in overlapping(9.75, 10.25)] == [booked.id]
    assert [event.id for event in overlapping(9, 12)] == [booked.id]
    # back-to-back intervals do not overlap
    assert overlapping(9.5, 10) == []
    assert overlapping(10.5, 11) == []
    assert overlapping(10, 10.5, exclude_id=booked.id) == []


def test_json_store_survives_restart():
    """A new store over the same directory sees every event and continues the id sequence."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonEventStore(data_dir=tmpdir)
        first = store.create(_draft("p1", 9, 10, event_type=EventType.booking, client_name="Ana"))
        store.create(_draft("provider/with slash", 9, 10))
        store.close()

        reopened = JsonEventStore(data_dir=tmpdir)
        restored = reopened.get(first.id)
        assert restored == first
        assert restored.event_type == EventType.booking
        assert len(reopened.list_by_provider("provider/with slash")) == 1

        third = reopened.create(_draft("p1", 11, 12))
        assert third.id == first.id + 2


def test_json_store_reports_unreadable_documents():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonEventStore(data_dir=tmpdir)
        store.create(_draft("p1", 9, 10))

        provider_file = next(Path(tmpdir).glob("provider_*.json"))
        provider_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreUnavailable):
            store.list_by_provider("p1")
