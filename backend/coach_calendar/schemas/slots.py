# backend/coach_calendar/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..services.slots import SlotStatus


class PublicSlot(BaseModel):
    """Slot as shown to clients."""
    slot_time: datetime
    available: bool

    model_config = {"from_attributes": True}


class AdminSlot(BaseModel):
    """Slot with status and, when booked, who booked it."""
    slot_time: datetime
    status: SlotStatus
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class BlockedSlotDebug(BaseModel):
    """Raw blocked row with its comparison key."""
    slot_time_utc: datetime
    slot_time_local: datetime
    slot_key: int
    created_at: datetime

    model_config = {"from_attributes": True}
