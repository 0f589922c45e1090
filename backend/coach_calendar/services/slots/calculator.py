# backend/coach_calendar/services/slots/calculator.py
"""
Candidate slot generation.

Produces the ordered, duplicate-free list of slot instants for the booking
window: business days × business hours, one slot every slot_step_minutes,
closing time included (09:00-20:00 → 23 slots).

Contains:
✓ business hours / business days / horizon
✓ "now" cut-off (strictly later instants only)
✓ DST: skipped wall times dropped, ambiguous ones take the first occurrence

Does NOT contain:
✗ Bookings / blocked slots (overlaid by availability.reconcile)

Recomputed on every read; nothing is cached.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from .config import BookingConfig, get_booking_config
from .timekeys import slot_key


def generate_slots(
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> list[datetime]:
    """
    Generate every candidate slot in the booking window.

    Returns:
        Aware datetimes in the business timezone, chronological.
        Empty list when the window is already over.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)

    seen: set[int] = set()
    slots: list[datetime] = []

    for target_date in window_dates(config, now):
        for slot_dt in calculate_day_slots(target_date, config, now):
            key = slot_key(slot_dt)
            if key in seen:
                continue
            seen.add(key)
            slots.append(slot_dt)

    return slots


def window_dates(config: BookingConfig, now: datetime) -> list[date]:
    """Local dates covered by the booking window."""
    if config.horizon_start is not None:
        start = config.horizon_start
    else:
        start = _as_aware(now).astimezone(config.zone).date()
    return [start + timedelta(days=offset) for offset in range(config.horizon_days)]


def calculate_day_slots(
    target_date: date,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> list[datetime]:
    """
    Calculate slots for a single local date.

    Returns:
        Aware datetimes strictly after now. Empty list = no slots.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)
    now_key = slot_key(now)

    if not config.is_business_day(target_date):
        return []

    day_slots = wall_clock_slots(
        target_date,
        config.day_start_minutes,
        config.day_end_minutes,
        config.slot_step_minutes,
        config.zone,
    )
    return [s for s in day_slots if slot_key(s) > now_key]


def wall_clock_slots(
    target_date: date,
    start_minutes: int,
    end_minutes: int,
    step: int,
    zone: ZoneInfo,
) -> list[datetime]:
    """Every existing local time from start to end (inclusive) on target_date."""
    slots: list[datetime] = []

    t = start_minutes
    while t <= end_minutes:
        wall = datetime.combine(target_date, time(t // 60, t % 60))
        slot_dt = _localize(wall, zone)
        if slot_dt is not None:
            slots.append(slot_dt)
        t += step

    return slots


# ── Helpers ──────────────────────────────────────────────────────────────


def _localize(wall: datetime, zone: ZoneInfo) -> datetime | None:
    """
    Attach the business zone to a naive wall-clock time.

    Returns None for wall times that do not exist (spring-forward gap).
    fold=0 picks the first occurrence of an ambiguous (fall-back) time.
    """
    local = wall.replace(tzinfo=zone, fold=0)
    roundtrip = local.astimezone(timezone.utc).astimezone(zone)
    if roundtrip.replace(tzinfo=None) != wall:
        return None
    return local


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
