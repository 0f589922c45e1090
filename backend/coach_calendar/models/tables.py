from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Text, text
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Instant column stored as naive UTC, always read back as aware UTC.

    SQLite drops offsets and PostgreSQL keeps them; this keeps both
    engines returning the same values.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Booking(Base):
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    slot_time = Column(UTCDateTime, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    duration = Column(Integer, nullable=False, server_default=text('30'))
    meeting_ref = Column(Text)
    meeting_link = Column(Text)

    def __repr__(self):
        return f"<Booking {self.slot_time.isoformat()} {self.email}>"


class BlockedSlot(Base):
    __tablename__ = 'blocked_slots'

    id = Column(Integer, primary_key=True)
    slot_time = Column(UTCDateTime, nullable=False, unique=True, index=True)
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<BlockedSlot {self.slot_time.isoformat()}>"
