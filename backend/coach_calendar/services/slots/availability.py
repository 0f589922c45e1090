# backend/coach_calendar/services/slots/availability.py
"""
Slot status reconciliation.

Overlays the persisted bookings and blocked slots on the generated
candidates. Both sets are keyed by slot_key() so that business-local
candidates and UTC rows compare as instants.

Precedence: booked > blocked > available. A slot present in both tables
is a data anomaly; it resolves to booked.

Public and admin projections are built from the same reconcile() pass.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.orm import Session

from .calculator import generate_slots
from .config import BookingConfig, get_booking_config
from .timekeys import slot_key, to_business_time


class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class SlotState:
    slot_time: datetime
    status: SlotStatus
    name: str | None = None
    email: str | None = None

    @property
    def available(self) -> bool:
        return self.status is SlotStatus.AVAILABLE


def reconcile(
    candidates: Iterable[datetime],
    bookings: Iterable,
    blocked: Iterable,
) -> list[SlotState]:
    """
    Assign a status to every candidate, preserving candidate order.

    Args:
        candidates: Slot instants from generate_slots()
        bookings: Objects with slot_time, name, email (Booking rows)
        blocked: Objects with slot_time (BlockedSlot rows)
    """
    booked_by_key = {slot_key(b.slot_time): b for b in bookings}
    blocked_keys = {slot_key(b.slot_time) for b in blocked}

    states: list[SlotState] = []
    for slot_time in candidates:
        key = slot_key(slot_time)
        booking = booked_by_key.get(key)

        if booking is not None:
            states.append(SlotState(
                slot_time=slot_time,
                status=SlotStatus.BOOKED,
                name=booking.name,
                email=booking.email,
            ))
        elif key in blocked_keys:
            states.append(SlotState(slot_time=slot_time, status=SlotStatus.BLOCKED))
        else:
            states.append(SlotState(slot_time=slot_time, status=SlotStatus.AVAILABLE))

    return states


def public_view(states: Iterable[SlotState]) -> list[dict]:
    """Instant + availability flag; no client identity."""
    return [
        {"slot_time": s.slot_time, "available": s.available}
        for s in states
    ]


def admin_view(states: Iterable[SlotState]) -> list[dict]:
    """Instant + status, with name/email on booked slots."""
    return [
        {
            "slot_time": s.slot_time,
            "status": s.status,
            "name": s.name,
            "email": s.email,
        }
        for s in states
    ]


def load_slot_states(
    db: Session,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> list[SlotState]:
    """Generate candidates and reconcile them against the database."""
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)

    candidates = generate_slots(config, now)
    if not candidates:
        return []

    bookings = _get_bookings(db)
    blocked = _get_blocked_slots(db)
    return reconcile(candidates, bookings, blocked)


def describe_blocked_slots(db: Session, config: BookingConfig | None = None) -> list[dict]:
    """Raw blocked rows with their keys (admin debugging)."""
    config = config or get_booking_config()
    return [
        {
            "slot_time_utc": row.slot_time,
            "slot_time_local": to_business_time(row.slot_time, config.zone),
            "slot_key": slot_key(row.slot_time),
            "created_at": row.created_at,
        }
        for row in _get_blocked_slots(db)
    ]


# ── Database helpers ─────────────────────────────────────────────────────


def _get_bookings(db: Session) -> list:
    from ...models import Booking
    return db.query(Booking).all()


def _get_blocked_slots(db: Session) -> list:
    from ...models import BlockedSlot
    return db.query(BlockedSlot).order_by(BlockedSlot.slot_time).all()
