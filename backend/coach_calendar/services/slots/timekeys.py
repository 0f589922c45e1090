# backend/coach_calendar/services/slots/timekeys.py
"""
Comparison keys for slot instants.

A slot is identified by an instant, not by a wall-clock string. Every
membership test, equality check and uniqueness lookup goes through
slot_key() / to_utc(), so "2025-06-02T11:30:00+02:00" and
"2025-06-02T09:30:00Z" are the same slot.
"""

import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ...errors import ValidationError

# date "T" time, seconds required, colon-form offset
RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(?:\.\d+)?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})?"
)


def to_utc(value: datetime) -> datetime:
    """
    Normalize an instant to aware UTC with whole-second precision.

    Naive values are read as UTC: that is how instants are persisted.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def slot_key(value: datetime) -> int:
    """Timezone-independent key: Unix epoch seconds."""
    return int(to_utc(value).timestamp())


def parse_slot_time(raw: str | None) -> datetime:
    """
    Parse an RFC 3339 timestamp (offset required) into UTC.

    Raises:
        ValidationError: missing, malformed or offset-less input
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("slot_time is required")

    text = raw.strip()
    match = RFC3339_PATTERN.fullmatch(text)
    if match is None:
        raise ValidationError("Invalid slot_time format")
    if match.group("offset") is None:
        raise ValidationError("slot_time must include a UTC offset")

    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError("Invalid slot_time format")

    return to_utc(parsed)


def to_business_time(value: datetime, zone: ZoneInfo) -> datetime:
    """Render an instant in the business timezone (for output only)."""
    return to_utc(value).astimezone(zone)
