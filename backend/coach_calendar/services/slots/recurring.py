# backend/coach_calendar/services/slots/recurring.py
"""
Weekly blocking plan used by scripts/block_slots.py.

Default schedule:
- Monday-Thursday: 11:30-15:00 (lunch break)
- Sunday: 09:00-20:00 (whole day)
- Friday, Saturday: nothing
"""

from datetime import date, datetime, timedelta

from .calculator import wall_clock_slots
from .config import BookingConfig, get_booking_config, time_str_to_minutes

DEFAULT_WEEKLY_BLOCKS: dict[int, tuple[str, str]] = {
    0: ("11:30", "15:00"),
    1: ("11:30", "15:00"),
    2: ("11:30", "15:00"),
    3: ("11:30", "15:00"),
    6: ("09:00", "20:00"),
}


def plan_weekly_blocks(
    start_date: date,
    days: int,
    rules: dict[int, tuple[str, str]] | None = None,
    config: BookingConfig | None = None,
) -> list[datetime]:
    """
    Instants to block over `days` local dates from start_date.

    rules maps weekday (0 = Monday) to an inclusive ("HH:MM", "HH:MM") window.
    """
    config = config or get_booking_config()
    rules = DEFAULT_WEEKLY_BLOCKS if rules is None else rules

    planned: list[datetime] = []
    for offset in range(days):
        target_date = start_date + timedelta(days=offset)
        window = rules.get(target_date.weekday())
        if window is None:
            continue
        planned.extend(wall_clock_slots(
            target_date,
            time_str_to_minutes(window[0]),
            time_str_to_minutes(window[1]),
            config.slot_step_minutes,
            config.zone,
        ))
    return planned
