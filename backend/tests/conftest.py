"""Shared test fixtures."""
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coach_calendar.database import get_db
from coach_calendar.dependencies import get_confirmation_sender, get_meeting_provider, get_now
from coach_calendar.errors import DependencyError
from coach_calendar.main import app
from coach_calendar.models import Base
from coach_calendar.services.slots import BookingConfig, get_booking_config
from coach_calendar.services.zoom import Meeting

# Sunday 2025-06-01 10:00 in Amsterdam (CEST, +02:00)
NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


class FakeMeetings:
    def __init__(self, fail_create: bool = False, fail_delete: bool = False):
        self.fail_create = fail_create
        self.fail_delete = fail_delete
        self.created = []
        self.deleted = []

    def create_meeting(self, name, email, slot_time):
        if self.fail_create:
            raise DependencyError("zoom down")
        self.created.append((name, email, slot_time))
        n = len(self.created)
        return Meeting(ref=f"m-{n}", join_url=f"https://zoom.example/j/{n}")

    def delete_meeting(self, meeting_ref):
        self.deleted.append(meeting_ref)
        if self.fail_delete:
            raise DependencyError("zoom down")


class FakeMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_confirmation(self, name, email, slot_time, meeting_link=None):
        self.sent.append((name, email, slot_time, meeting_link))
        if self.fail:
            raise DependencyError("smtp down")


@pytest.fixture
def config() -> BookingConfig:
    """One week from Sunday 2025-06-01, every day 09:00-20:00."""
    return BookingConfig(
        timezone="Europe/Amsterdam",
        horizon_start=date(2025, 6, 1),
        horizon_days=7,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def meetings() -> FakeMeetings:
    return FakeMeetings()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(session_factory, config, meetings, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_booking_config] = lambda: config
    app.dependency_overrides[get_meeting_provider] = lambda: meetings
    app.dependency_overrides[get_confirmation_sender] = lambda: mailer

    yield TestClient(app)

    app.dependency_overrides.clear()
