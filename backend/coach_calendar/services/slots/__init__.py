# backend/coach_calendar/services/slots/__init__.py
"""
Slots module.

calculator: candidate instants for the booking window (no cache)
availability: status overlay from bookings + blocked slots
timekeys: the instant normalization used by both
"""

from .config import BookingConfig, get_booking_config
from .calculator import calculate_day_slots, generate_slots
from .availability import (
    SlotState,
    SlotStatus,
    admin_view,
    describe_blocked_slots,
    load_slot_states,
    public_view,
    reconcile,
)
from .timekeys import parse_slot_time, slot_key, to_business_time, to_utc

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "calculate_day_slots",
    "generate_slots",
    "SlotState",
    "SlotStatus",
    "admin_view",
    "describe_blocked_slots",
    "load_slot_states",
    "public_view",
    "reconcile",
    "parse_slot_time",
    "slot_key",
    "to_business_time",
    "to_utc",
]
