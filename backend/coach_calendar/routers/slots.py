# backend/coach_calendar/routers/slots.py
"""
Public API endpoints.

GET  /api/slots     - slots with an availability flag
POST /api/bookings  - book a slot
"""

from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_confirmation_sender, get_meeting_provider, get_now
from ..schemas.bookings import BookingCreate, BookingCreated, ErrorResponse
from ..schemas.slots import PublicSlot
from ..services import bookings
from ..services.slots import (
    BookingConfig,
    get_booking_config,
    load_slot_states,
    public_view,
    to_business_time,
)


router = APIRouter(prefix="/api", tags=["slots"])


@router.get("/slots", response_model=list[PublicSlot])
def get_slots(
    db: Session = Depends(get_db),
    config: BookingConfig = Depends(get_booking_config),
    now: datetime = Depends(get_now),
):
    """Bookable window with availability (booked and blocked both show as unavailable)."""
    states = load_slot_states(db, config, now)
    return public_view(states)


@router.post(
    "/bookings",
    response_model=BookingCreated,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    config: BookingConfig = Depends(get_booking_config),
    now: datetime = Depends(get_now),
    meetings=Depends(get_meeting_provider),
    mailer=Depends(get_confirmation_sender),
):
    booking = bookings.create_booking(
        db,
        slot_time=data.slot_time,
        name=data.name,
        email=data.email,
        now=now,
        meetings=meetings,
        mailer=mailer,
    )
    return BookingCreated(
        message="Booking created successfully",
        slot_time=to_business_time(booking.slot_time, config.zone),
        meeting_link=booking.meeting_link,
    )
