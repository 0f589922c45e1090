from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from coach_calendar.errors import ConflictError, DependencyError, NotFoundError, ValidationError
from coach_calendar.models import BlockedSlot, Booking
from coach_calendar.services import bookings

SLOT = "2025-06-02T11:30:00+02:00"
SLOT_UTC = "2025-06-02T09:30:00Z"


def book(db, now, slot=SLOT, meetings=None, mailer=None, name="Jane Doe", email="jane@example.com"):
    return bookings.create_booking(db, slot, name, email, now=now, meetings=meetings, mailer=mailer)


# ── create_booking ───────────────────────────────────────────────────────


def test_create_booking_stores_utc_instant_with_meeting(db, now, meetings, mailer):
    booking = book(db, now, meetings=meetings, mailer=mailer)

    assert booking.slot_time == datetime(2025, 6, 2, 9, 30, tzinfo=timezone.utc)
    assert booking.duration == 30
    assert booking.meeting_ref == "m-1"
    assert booking.meeting_link == "https://zoom.example/j/1"
    assert mailer.sent == [("Jane Doe", "jane@example.com", booking.slot_time, "https://zoom.example/j/1")]


def test_create_booking_strips_fields(db, now):
    booking = book(db, now, name="  Jane  ", email=" jane@example.com ")
    assert booking.name == "Jane"
    assert booking.email == "jane@example.com"


def test_meeting_failure_does_not_block_booking(db, now, meetings, mailer):
    meetings.fail_create = True

    booking = book(db, now, meetings=meetings, mailer=mailer)

    assert booking.meeting_link is None
    assert mailer.sent[0][3] is None
    assert db.query(Booking).count() == 1


def test_email_failure_does_not_undo_booking(db, now, mailer):
    mailer.fail = True

    book(db, now, mailer=mailer)

    assert db.query(Booking).count() == 1


@pytest.mark.parametrize(
    "slot, name, email",
    [
        (None, "Jane", "jane@example.com"),
        (SLOT, "", "jane@example.com"),
        (SLOT, "Jane", "   "),
        ("tomorrow", "Jane", "jane@example.com"),
        ("2025-06-02T11:30:00", "Jane", "jane@example.com"),
    ],
)
def test_create_booking_rejects_invalid_input(db, now, slot, name, email):
    with pytest.raises(ValidationError):
        bookings.create_booking(db, slot, name, email, now=now)
    assert db.query(Booking).count() == 0


@pytest.mark.parametrize("slot", ["2025-05-30T10:00:00+02:00", "2025-06-01T08:00:00Z"])
def test_past_and_current_slots_are_rejected(db, now, slot, meetings):
    with pytest.raises(ValidationError) as exc:
        book(db, now, slot=slot, meetings=meetings)

    assert exc.value.reason == "past_slot"
    assert meetings.created == []


def test_double_booking_conflicts_across_offsets(db, now, meetings):
    book(db, now, meetings=meetings)

    with pytest.raises(ConflictError) as exc:
        book(db, now, slot=SLOT_UTC, meetings=meetings, name="Other", email="other@example.com")

    assert exc.value.reason == "already_booked"
    assert len(meetings.created) == 1
    assert db.query(Booking).count() == 1


def test_booking_a_blocked_slot_conflicts(db, now):
    bookings.block_slot(db, SLOT_UTC)

    with pytest.raises(ConflictError) as exc:
        book(db, now)

    assert exc.value.reason == "slot_blocked"


def test_insert_race_becomes_conflict_and_discards_meeting(db, now, meetings, monkeypatch):
    book(db, now, meetings=meetings)
    # simulate a concurrent insert that the pre-check did not see
    monkeypatch.setattr(bookings, "_find_booking", lambda db, instant: None)

    with pytest.raises(ConflictError) as exc:
        book(db, now, meetings=meetings)

    assert exc.value.reason == "already_booked"
    assert meetings.deleted == ["m-2"]
    assert db.query(Booking).count() == 1


def test_storage_failure_is_dependency_error(db, now, meetings, mailer, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(DependencyError):
        book(db, now, meetings=meetings, mailer=mailer)

    assert meetings.deleted == ["m-1"]
    assert mailer.sent == []


# ── cancel_booking ───────────────────────────────────────────────────────


def test_cancel_removes_booking_and_meeting(db, now, meetings):
    book(db, now, meetings=meetings)

    cancelled = bookings.cancel_booking(db, SLOT_UTC, meetings=meetings)

    assert cancelled.email == "jane@example.com"
    assert meetings.deleted == ["m-1"]
    assert db.query(Booking).count() == 0


def test_cancel_survives_meeting_delete_failure(db, now, meetings):
    book(db, now, meetings=meetings)
    meetings.fail_delete = True

    bookings.cancel_booking(db, SLOT, meetings=meetings)

    assert db.query(Booking).count() == 0


def test_cancel_without_meeting_integration(db, now, meetings):
    book(db, now, meetings=meetings)

    bookings.cancel_booking(db, SLOT, meetings=None)

    assert db.query(Booking).count() == 0


def test_cancel_missing_booking(db):
    with pytest.raises(NotFoundError):
        bookings.cancel_booking(db, SLOT)


def test_slot_is_bookable_again_after_cancel(db, now):
    book(db, now)
    bookings.cancel_booking(db, SLOT)

    assert book(db, now, name="Second").name == "Second"


# ── blocked slots ────────────────────────────────────────────────────────


def test_block_and_unblock_with_different_offsets(db):
    bookings.block_slot(db, SLOT)
    assert db.query(BlockedSlot).one().slot_time == datetime(2025, 6, 2, 9, 30, tzinfo=timezone.utc)

    bookings.unblock_slot(db, SLOT_UTC)
    assert db.query(BlockedSlot).count() == 0


def test_block_twice_is_already_blocked(db):
    bookings.block_slot(db, SLOT)

    with pytest.raises(ConflictError) as exc:
        bookings.block_slot(db, SLOT_UTC)

    assert exc.value.reason == "already_blocked"


def test_block_booked_slot_is_slot_booked(db, now):
    book(db, now)

    with pytest.raises(ConflictError) as exc:
        bookings.block_slot(db, SLOT_UTC)

    assert exc.value.reason == "slot_booked"
    assert db.query(BlockedSlot).count() == 0


def test_any_instant_can_be_blocked(db):
    row = bookings.block_slot(db, "2025-06-02T03:17:00+00:00")
    assert row.slot_time == datetime(2025, 6, 2, 3, 17, tzinfo=timezone.utc)


def test_unblock_missing_slot(db):
    with pytest.raises(NotFoundError) as exc:
        bookings.unblock_slot(db, SLOT)
    assert exc.value.message == "Slot not found in blocked list"


def test_clear_all_blocked_counts_rows(db):
    assert bookings.clear_all_blocked(db) == 0

    bookings.block_slot(db, SLOT)
    bookings.block_slot(db, "2025-06-02T12:00:00+02:00")

    assert bookings.clear_all_blocked(db) == 2
    assert db.query(BlockedSlot).count() == 0
