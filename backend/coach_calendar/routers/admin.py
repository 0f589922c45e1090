# backend/coach_calendar/routers/admin.py
# Admin surface; unauthenticated, like the rest of the API.

from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_meeting_provider, get_now
from ..schemas.bookings import (
    ClearBlockedResponse,
    ErrorResponse,
    MessageResponse,
    SlotTimeRequest,
)
from ..schemas.slots import AdminSlot, BlockedSlotDebug
from ..services import bookings
from ..services.slots import (
    BookingConfig,
    admin_view,
    describe_blocked_slots,
    get_booking_config,
    load_slot_states,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/slots", response_model=list[AdminSlot], response_model_exclude_none=True)
def get_admin_slots(
    db: Session = Depends(get_db),
    config: BookingConfig = Depends(get_booking_config),
    now: datetime = Depends(get_now),
):
    states = load_slot_states(db, config, now)
    return admin_view(states)


@router.post(
    "/block",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def block_slot(data: SlotTimeRequest, db: Session = Depends(get_db)):
    bookings.block_slot(db, data.slot_time)
    return MessageResponse(message="Slot blocked successfully")


@router.post(
    "/unblock",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def unblock_slot(data: SlotTimeRequest, db: Session = Depends(get_db)):
    bookings.unblock_slot(db, data.slot_time)
    return MessageResponse(message="Slot unblocked successfully")


@router.post(
    "/cancel",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def cancel_booking(
    data: SlotTimeRequest,
    db: Session = Depends(get_db),
    meetings=Depends(get_meeting_provider),
):
    bookings.cancel_booking(db, data.slot_time, meetings=meetings)
    return MessageResponse(message="Booking cancelled successfully")


@router.post("/clear-all-blocked", response_model=ClearBlockedResponse)
def clear_all_blocked(db: Session = Depends(get_db)):
    deleted = bookings.clear_all_blocked(db)
    return ClearBlockedResponse(message="All blocked slots cleared", rows_affected=deleted)


@router.get("/debug-blocked", response_model=list[BlockedSlotDebug])
def debug_blocked_slots(
    db: Session = Depends(get_db),
    config: BookingConfig = Depends(get_booking_config),
):
    """Stored blocked instants with their keys, for diagnosing timezone mismatches."""
    return describe_blocked_slots(db, config)
