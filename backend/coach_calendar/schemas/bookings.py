# backend/coach_calendar/schemas/bookings.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class BookingCreate(BaseModel):
    # plain strings: parsed and normalized by the booking service
    slot_time: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class SlotTimeRequest(BaseModel):
    slot_time: Optional[str] = None


class BookingCreated(BaseModel):
    message: str
    slot_time: datetime
    meeting_link: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class ClearBlockedResponse(BaseModel):
    message: str
    rows_affected: int


class ErrorResponse(BaseModel):
    detail: str
    reason: str
