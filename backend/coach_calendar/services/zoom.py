"""
backend/coach_calendar/services/zoom.py

Zoom integration (Server-to-Server OAuth).

Handles:
- Access token fetch and in-process caching
- Meeting creation for a booking
- Meeting deletion on cancellation
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import httpx

from ..config import Settings
from ..errors import DependencyError
from .slots.timekeys import to_utc

logger = logging.getLogger(__name__)

TOKEN_URL = "https://zoom.us/oauth/token"
API_URL = "https://api.zoom.us/v2"

TOKEN_TIMEOUT = 10.0
TOKEN_REFRESH_MARGIN = 300  # refresh 5 min before expiry
MEETING_DURATION_MINUTES = 30


@dataclass(frozen=True)
class Meeting:
    ref: str
    join_url: str


class ZoomTokenCache:
    """
    Owns the account-level access token.

    get_valid_token() is the only entry point. Refresh runs under a lock
    with a second validity check inside it, so concurrent requests that
    see an expired token trigger a single token request.
    """

    def __init__(
        self,
        account_id: str,
        client_id: str,
        client_secret: str,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = TOKEN_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.account_id = account_id
        self.client_id = client_id
        self.client_secret = client_secret
        self._transport = transport
        self._timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        # (token, expires_at) replaced as one tuple so readers never see a torn pair
        self._state: tuple[str, float] | None = None

    def get_valid_token(self) -> str:
        token = self._current()
        if token:
            return token

        with self._lock:
            token = self._current()
            if token:
                return token
            return self._refresh()

    def _current(self) -> str | None:
        state = self._state
        if state is not None and self._clock() < state[1]:
            return state[0]
        return None

    def _refresh(self) -> str:
        logger.info(f"Requesting Zoom OAuth token for account {self.account_id[:4]}****")

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "account_credentials",
                        "account_id": self.account_id,
                    },
                    auth=(self.client_id, self.client_secret),
                )
        except httpx.HTTPError as e:
            raise DependencyError(f"Zoom token request failed: {e}")

        if resp.status_code != 200:
            logger.error(f"Zoom OAuth error: status={resp.status_code} body={resp.text}")
            raise DependencyError(f"Zoom token request failed with status {resp.status_code}")

        try:
            payload = resp.json()
            token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise DependencyError(f"Invalid Zoom token response: {e}")

        lifetime = max(expires_in - TOKEN_REFRESH_MARGIN, 0)
        self._state = (token, self._clock() + lifetime)

        logger.info("Obtained Zoom access token")
        return token


class ZoomMeetingProvider:
    """Creates and deletes Zoom meetings for bookings."""

    def __init__(
        self,
        tokens: ZoomTokenCache,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
        api_url: str = API_URL,
    ):
        self.tokens = tokens
        self._transport = transport
        self._timeout = timeout
        self.api_url = api_url.rstrip("/")

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.tokens.get_valid_token()}"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                return client.request(method, f"{self.api_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise DependencyError(f"Zoom API request failed: {method} {path} -> {e}")

    def create_meeting(self, name: str, email: str, slot_time: datetime) -> Meeting:
        """
        Schedule a 30-minute meeting at slot_time.

        Raises:
            DependencyError: token or API failure
        """
        body = {
            "topic": f"Online consultation - {name}",
            "type": 2,  # scheduled meeting
            "start_time": to_utc(slot_time).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "duration": MEETING_DURATION_MINUTES,
            "timezone": "UTC",
            "agenda": f"Online consultation with {name} ({email})",
            "settings": {
                "host_video": True,
                "participant_video": True,
                "join_before_host": False,
                "mute_upon_entry": True,
                "waiting_room": True,
                "auto_recording": "none",
            },
        }

        resp = self._request("POST", "/users/me/meetings", json=body)
        if resp.status_code != 201:
            logger.error(f"Zoom API error: status={resp.status_code} body={resp.text}")
            raise DependencyError(f"Zoom API returned status {resp.status_code}")

        try:
            payload = resp.json()
            meeting = Meeting(ref=str(payload["id"]), join_url=payload["join_url"])
        except (ValueError, KeyError, TypeError) as e:
            raise DependencyError(f"Invalid Zoom meeting response: {e}")

        logger.info(f"Zoom meeting created: {meeting.ref}")
        return meeting

    def delete_meeting(self, meeting_ref: str) -> None:
        """
        Delete a meeting. A meeting that is already gone counts as deleted.

        Raises:
            DependencyError: token or API failure
        """
        resp = self._request("DELETE", f"/meetings/{meeting_ref}")

        if resp.status_code == 404:
            logger.warning(f"Zoom meeting not found: {meeting_ref}")
            return
        if resp.status_code != 204:
            logger.error(f"Zoom API error: status={resp.status_code} body={resp.text}")
            raise DependencyError(f"Zoom API returned status {resp.status_code}")

        logger.info(f"Zoom meeting deleted: {meeting_ref}")


def build_meeting_provider(cfg: Settings) -> ZoomMeetingProvider | None:
    """Provider from settings, or None when the integration is off."""
    if not cfg.create_zoom_meeting:
        logger.info("Zoom meeting creation disabled (CREATE_ZOOM_MEETING)")
        return None
    if not cfg.zoom_enabled:
        logger.warning(
            "Zoom integration disabled - set ZOOM_ACCOUNT_ID, ZOOM_CLIENT_ID, ZOOM_CLIENT_SECRET"
        )
        return None

    tokens = ZoomTokenCache(cfg.zoom_account_id, cfg.zoom_client_id, cfg.zoom_client_secret)
    logger.info("Zoom integration enabled")
    return ZoomMeetingProvider(tokens, timeout=cfg.zoom_timeout)
