"""
backend/coach_calendar/services/bookings.py

Slot lifecycle: available → booked → available (cancel),
available ↔ blocked (admin). booked and blocked never coexist.

Preconditions are checked against current rows first; the unique
constraints on slot_time stay the authority for races, and an
IntegrityError on insert becomes a ConflictError.

External collaborators (Zoom, SMTP) are best-effort: their failures are
logged and never undo a committed booking or cancellation.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ConflictError, DependencyError, NotFoundError, ValidationError
from ..models import BlockedSlot, Booking
from .slots.timekeys import parse_slot_time, slot_key

logger = logging.getLogger(__name__)

BOOKING_DURATION_MINUTES = 30


class MeetingProvider(Protocol):
    def create_meeting(self, name: str, email: str, slot_time: datetime): ...

    def delete_meeting(self, meeting_ref: str) -> None: ...


class ConfirmationSender(Protocol):
    def send_confirmation(
        self,
        name: str,
        email: str,
        slot_time: datetime,
        meeting_link: Optional[str] = None,
    ) -> None: ...


# ── Bookings ─────────────────────────────────────────────────────────────


def create_booking(
    db: Session,
    slot_time: str | None,
    name: str | None,
    email: str | None,
    now: datetime | None = None,
    meetings: MeetingProvider | None = None,
    mailer: ConfirmationSender | None = None,
) -> Booking:
    """
    Book a future slot.

    Order: provision meeting (best-effort) → insert row (fatal on failure)
    → send confirmation (best-effort).

    Raises:
        ValidationError: missing fields, bad timestamp, slot not in the future
        ConflictError: slot blocked or already booked
        DependencyError: storage failure
    """
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or not email or not (slot_time or "").strip():
        raise ValidationError("Name, email, and slot_time are required")

    instant = parse_slot_time(slot_time)
    now = now or datetime.now(timezone.utc)

    if slot_key(instant) <= slot_key(now):
        raise ValidationError("Cannot book past slots", reason="past_slot")

    if _find_blocked(db, instant) is not None:
        raise ConflictError("Slot is blocked", reason="slot_blocked")
    if _find_booking(db, instant) is not None:
        raise ConflictError("Slot already booked", reason="already_booked")

    meeting = None
    if meetings is not None:
        try:
            meeting = meetings.create_meeting(name, email, instant)
        except Exception as e:
            logger.warning(f"Failed to create Zoom meeting for {instant.isoformat()}: {e}")

    booking = Booking(
        slot_time=instant,
        name=name,
        email=email,
        duration=BOOKING_DURATION_MINUTES,
        meeting_ref=meeting.ref if meeting else None,
        meeting_link=meeting.join_url if meeting else None,
    )
    db.add(booking)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        _discard_meeting(meetings, meeting)
        raise ConflictError("Slot already booked", reason="already_booked")
    except SQLAlchemyError as e:
        db.rollback()
        _discard_meeting(meetings, meeting)
        logger.error(f"Error creating booking for {instant.isoformat()}: {e}")
        raise DependencyError("Failed to create booking")

    db.refresh(booking)
    logger.info(f"Booking created: {instant.isoformat()} ({email})")

    if mailer is not None:
        try:
            mailer.send_confirmation(name, email, instant, booking.meeting_link)
        except Exception as e:
            logger.warning(f"Booking created but failed to send confirmation email: {e}")

    return booking


def cancel_booking(
    db: Session,
    slot_time: str | None,
    meetings: MeetingProvider | None = None,
) -> Booking:
    """
    Remove the booking at slot_time, then try to delete its meeting.

    Raises:
        ValidationError: bad timestamp
        NotFoundError: no booking at that instant
    """
    instant = parse_slot_time(slot_time)

    booking = _find_booking(db, instant)
    if booking is None:
        raise NotFoundError("Booking not found")
    # keep the loaded attributes readable after the row is gone
    db.expunge(booking)

    deleted = (
        db.query(Booking)
        .filter(Booking.id == booking.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        # removed by a concurrent request between lookup and delete
        raise NotFoundError("Booking not found")

    logger.info(f"Booking cancelled: {instant.isoformat()} ({booking.email})")

    if booking.meeting_ref:
        if meetings is None:
            logger.warning(
                f"Booking had Zoom meeting {booking.meeting_ref} but the integration is disabled"
            )
        else:
            try:
                meetings.delete_meeting(booking.meeting_ref)
            except Exception as e:
                logger.warning(f"Failed to delete Zoom meeting {booking.meeting_ref}: {e}")

    return booking


# ── Blocked slots ────────────────────────────────────────────────────────


def block_slot(db: Session, slot_time: str | None) -> BlockedSlot:
    """
    Block an instant. Any instant may be blocked, generated or not.

    Raises:
        ValidationError: bad timestamp
        ConflictError: slot_booked / already_blocked
    """
    instant = parse_slot_time(slot_time)

    if _find_booking(db, instant) is not None:
        raise ConflictError("Cannot block a slot that is already booked", reason="slot_booked")

    row = BlockedSlot(slot_time=instant)
    db.add(row)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Slot already blocked", reason="already_blocked")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error blocking slot {instant.isoformat()}: {e}")
        raise DependencyError("Failed to block slot")

    db.refresh(row)
    logger.info(f"Slot blocked: {instant.isoformat()}")
    return row


def unblock_slot(db: Session, slot_time: str | None) -> None:
    """
    Raises:
        ValidationError: bad timestamp
        NotFoundError: instant is not blocked
    """
    instant = parse_slot_time(slot_time)

    deleted = (
        db.query(BlockedSlot)
        .filter(BlockedSlot.slot_time == instant)
        .delete(synchronize_session=False)
    )
    db.commit()

    if not deleted:
        raise NotFoundError("Slot not found in blocked list")

    logger.info(f"Slot unblocked: {instant.isoformat()}")


def clear_all_blocked(db: Session) -> int:
    """Delete every blocked slot; returns the number of rows removed."""
    deleted = db.query(BlockedSlot).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Cleared {deleted} blocked slots")
    return deleted


# ── Helpers ──────────────────────────────────────────────────────────────


def _find_booking(db: Session, instant: datetime) -> Booking | None:
    return db.query(Booking).filter(Booking.slot_time == instant).first()


def _find_blocked(db: Session, instant: datetime) -> BlockedSlot | None:
    return db.query(BlockedSlot).filter(BlockedSlot.slot_time == instant).first()


def _discard_meeting(meetings: MeetingProvider | None, meeting) -> None:
    """Drop a meeting provisioned for a booking that was never stored."""
    if meetings is None or meeting is None:
        return
    try:
        meetings.delete_meeting(meeting.ref)
    except Exception as e:
        logger.warning(f"Failed to delete orphaned Zoom meeting {meeting.ref}: {e}")
