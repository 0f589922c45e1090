"""FastAPI dependencies for the clock and the external collaborators."""

from datetime import datetime, timezone
from functools import lru_cache

from .config import settings
from .services.email import SmtpConfirmationSender, build_confirmation_sender
from .services.slots import get_booking_config
from .services.zoom import ZoomMeetingProvider, build_meeting_provider


def get_now() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache
def get_meeting_provider() -> ZoomMeetingProvider | None:
    # one provider per process: it owns the shared Zoom token cache
    return build_meeting_provider(settings)


@lru_cache
def get_confirmation_sender() -> SmtpConfirmationSender | None:
    return build_confirmation_sender(settings, get_booking_config().zone)
