# backend/coach_calendar/services/slots/config.py
"""
Booking configuration for slot generation.
"""

from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...config import settings

ALL_WEEKDAYS = (0, 1, 2, 3, 4, 5, 6)


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slot calendar.

    Attributes:
        timezone: IANA name of the business timezone (observes DST)
        day_start: First slot of the day, local wall-clock "HH:MM"
        day_end: Last slot of the day, local wall-clock "HH:MM" (inclusive)
        slot_step_minutes: Grid step in minutes (15/30/60)
        horizon_days: Number of consecutive local dates in the window
        horizon_start: Fixed first date of the window; None = today
        business_days: Weekdays with slots, 0 = Monday
    """
    timezone: str = "Europe/Amsterdam"
    day_start: str = "09:00"
    day_end: str = "20:00"
    slot_step_minutes: int = 30  # 15 / 30 / 60
    horizon_days: int = 31
    horizon_start: date | None = None
    business_days: tuple[int, ...] = ALL_WEEKDAYS

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if not 0 <= self.day_start_minutes <= self.day_end_minutes < 24 * 60:
            raise ValueError(f"Invalid business hours {self.day_start}-{self.day_end}")
        if self.horizon_days < 0:
            raise ValueError(f"horizon_days must be >= 0, got {self.horizon_days}")
        if any(d not in ALL_WEEKDAYS for d in self.business_days):
            raise ValueError(f"business_days must be within 0..6, got {self.business_days}")
        try:
            ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            raise ValueError(f"Unknown timezone: {self.timezone}")

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def day_start_minutes(self) -> int:
        return time_str_to_minutes(self.day_start)

    @property
    def day_end_minutes(self) -> int:
        return time_str_to_minutes(self.day_end)

    @property
    def slots_per_day(self) -> int:
        """
        Number of slots on a business day, closing boundary included.

        09:00-20:00 every 30 min → 23 slots.
        """
        return (self.day_end_minutes - self.day_start_minutes) // self.slot_step_minutes + 1

    def is_business_day(self, target_date: date) -> bool:
        return target_date.weekday() in self.business_days


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton), derived from settings."""
    return BookingConfig(
        timezone=settings.business_timezone,
        day_start=settings.day_start,
        day_end=settings.day_end,
        slot_step_minutes=settings.slot_step_minutes,
        horizon_days=settings.horizon_days,
        horizon_start=settings.horizon_start,
        business_days=tuple(settings.business_days),
    )
