"""
Booking confirmation emails over SMTP.

Message layout:
  multipart/mixed
    multipart/alternative (text/plain, text/html)
    text/calendar invite.ics (icalendar, METHOD:REQUEST, organizer + attendee)
"""

import logging
import smtplib
import ssl
import uuid
from datetime import datetime, timedelta, timezone
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email import encoders
from email.utils import formataddr, parseaddr
from html import escape
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from icalendar import Alarm, Calendar, Event

from ..config import Settings
from ..errors import DependencyError
from .slots.timekeys import to_business_time, to_utc

logger = logging.getLogger(__name__)

SESSION_MINUTES = 30
SUBJECT = "Your consultation is confirmed"
CALENDAR_STAMP = "%Y%m%dT%H%M%SZ"


def format_slot_for_humans(slot_time: datetime, zone: ZoneInfo) -> str:
    """Monday, June 2, 2025 at 11:30 AM CEST"""
    local = to_business_time(slot_time, zone)
    return f"{local:%A, %B} {local.day}, {local:%Y at %I:%M %p %Z}"


def google_calendar_url(slot_time: datetime) -> str:
    """'Add to Google Calendar' link for the session."""
    start = to_utc(slot_time)
    end = start + timedelta(minutes=SESSION_MINUTES)
    query = urlencode({
        "action": "TEMPLATE",
        "text": "Coaching Session",
        "dates": f"{start:{CALENDAR_STAMP}}/{end:{CALENDAR_STAMP}}",
    })
    return f"https://calendar.google.com/calendar/render?{query}"


def build_ics(
    name: str,
    email: str,
    slot_time: datetime,
    organizer: str,
    organizer_name: str = "",
    meeting_link: str | None = None,
    now: datetime | None = None,
) -> str:
    """iCalendar REQUEST invite with a 15-minute reminder."""
    start = to_utc(slot_time)
    stamp = to_utc(now or datetime.now(timezone.utc))

    cal = Calendar()
    cal.add('prodid', '-//Coach Calendar//Booking System//EN')
    cal.add('version', '2.0')
    cal.add('calscale', 'GREGORIAN')
    cal.add('method', 'REQUEST')

    event = Event()
    event.add('uid', f"{uuid.uuid4().hex}@coach-calendar")
    event.add('dtstamp', stamp)
    event.add('dtstart', start)
    event.add('dtend', start + timedelta(minutes=SESSION_MINUTES))
    event.add('summary', f"Online consultation with {name}")
    event.add(
        'description',
        f"Your coaching appointment has been confirmed.\n\nClient: {name}\nEmail: {email}",
    )
    event.add('location', meeting_link or "Online")
    event.add('status', 'CONFIRMED')
    event.add('sequence', 0)
    event.add('organizer', f"mailto:{organizer}", parameters={"CN": organizer_name or organizer})
    event.add(
        'attendee',
        f"mailto:{email}",
        parameters={"CN": name, "ROLE": "REQ-PARTICIPANT", "PARTSTAT": "ACCEPTED"},
    )

    alarm = Alarm()
    alarm.add('action', 'DISPLAY')
    alarm.add('description', "Your online consultation starts in 15 minutes")
    alarm.add('trigger', timedelta(minutes=-15))
    event.add_component(alarm)

    cal.add_component(event)
    return cal.to_ical().decode('utf-8')


def _text_body(name: str, email: str, when: str, meeting_link: str | None, calendar_url: str) -> str:
    meeting = f"\nZoom meeting:\n{meeting_link}\n" if meeting_link else ""
    return (
        f"Hello, {name}!\n\n"
        f"Thank you for booking a session.\n\n"
        f"Date and time: {when}\n"
        f"Duration: {SESSION_MINUTES} minutes\n"
        f"Name: {name}\n"
        f"Email: {email}\n"
        f"{meeting}\n"
        f"Add to calendar:\n{calendar_url}\n\n"
        f"Or open the attached invite.ics in Outlook, Apple Calendar, etc.\n\n"
        f"If you need to cancel or reschedule, please get in touch as soon as possible.\n\n"
        f"This is an automated message. Please do not reply.\n"
    )


def _html_body(name: str, email: str, when: str, meeting_link: str | None, calendar_url: str) -> str:
    meeting = ""
    if meeting_link:
        meeting = (
            '<div class="meeting">'
            "<h3>Zoom meeting</h3>"
            f'<p><a href="{escape(meeting_link)}">Join Zoom</a></p>'
            "<p>The link opens 10 minutes before the start.</p>"
            "</div>"
        )
    return (
        '<!DOCTYPE html><html><head><meta charset="UTF-8"></head><body>'
        f"<h1>Booking confirmed</h1>"
        f"<p>Hello, <strong>{escape(name)}</strong>!</p>"
        "<p>Thank you for booking a session.</p>"
        "<ul>"
        f"<li><strong>Date and time:</strong> {escape(when)}</li>"
        f"<li><strong>Duration:</strong> {SESSION_MINUTES} minutes</li>"
        f"<li><strong>Name:</strong> {escape(name)}</li>"
        f"<li><strong>Email:</strong> {escape(email)}</li>"
        "</ul>"
        f"{meeting}"
        f'<p><a href="{escape(calendar_url)}">Add to Google Calendar</a></p>'
        "<p>Or open the attached invite.ics for other calendars.</p>"
        "<p><small>This is an automated message. Please do not reply.</small></p>"
        "</body></html>"
    )


def build_confirmation_message(
    sender: str,
    recipient_name: str,
    recipient_email: str,
    slot_time: datetime,
    zone: ZoneInfo,
    meeting_link: str | None = None,
) -> MIMEMultipart:
    when = format_slot_for_humans(slot_time, zone)
    calendar_url = google_calendar_url(slot_time)

    message = MIMEMultipart("mixed")
    message["From"] = sender
    message["To"] = recipient_email
    message["Subject"] = SUBJECT

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText(
        _text_body(recipient_name, recipient_email, when, meeting_link, calendar_url), "plain", "utf-8"
    ))
    alternative.attach(MIMEText(
        _html_body(recipient_name, recipient_email, when, meeting_link, calendar_url), "html", "utf-8"
    ))
    message.attach(alternative)

    organizer_name, organizer = parseaddr(sender)
    ics = build_ics(
        recipient_name,
        recipient_email,
        slot_time,
        organizer=organizer,
        organizer_name=organizer_name,
        meeting_link=meeting_link,
    )
    invite = MIMEBase("text", "calendar", method="REQUEST", name="invite.ics", charset="utf-8")
    invite.set_payload(ics.encode("utf-8"))
    encoders.encode_base64(invite)
    invite.add_header("Content-Disposition", "attachment", filename="invite.ics")
    message.attach(invite)

    return message


class SmtpConfirmationSender:
    """Sends booking confirmations through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        from_addr: str,
        password: str,
        zone: ZoneInfo,
        from_name: str = "",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.from_addr = from_addr
        self.password = password
        self.zone = zone
        self.from_name = from_name
        self.timeout = timeout

    def send_confirmation(
        self,
        name: str,
        email: str,
        slot_time: datetime,
        meeting_link: str | None = None,
    ) -> None:
        """
        Raises:
            DependencyError: SMTP connection, auth or delivery failure
        """
        sender = formataddr((self.from_name, self.from_addr), charset="utf-8")
        message = build_confirmation_message(sender, name, email, slot_time, self.zone, meeting_link)

        context = ssl.create_default_context()
        try:
            if self.port == 465:
                server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with server:
                if self.port != 465:
                    server.starttls(context=context)
                server.login(self.from_addr, self.password)
                server.sendmail(self.from_addr, [email], message.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send confirmation email to {email}: {e}")
            raise DependencyError(f"Failed to send confirmation email: {e}")

        logger.info(f"Confirmation email sent to {email}")


def build_confirmation_sender(cfg: Settings, zone: ZoneInfo) -> SmtpConfirmationSender | None:
    """Sender from settings, or None when confirmations are off."""
    if not cfg.send_confirmation_email:
        logger.info("Confirmation emails disabled (SEND_CONFIRMATION_EMAIL)")
        return None
    if not cfg.smtp_enabled:
        logger.warning(
            "Email service disabled - set SMTP_HOST, SMTP_PORT, SMTP_FROM, SMTP_PASSWORD"
        )
        return None

    logger.info(f"Email service enabled (from: {cfg.smtp_from_name} <{cfg.smtp_from}>)")
    return SmtpConfirmationSender(
        host=cfg.smtp_host,
        port=cfg.smtp_port,
        from_addr=cfg.smtp_from,
        password=cfg.smtp_password,
        zone=zone,
        from_name=cfg.smtp_from_name,
        timeout=cfg.smtp_timeout,
    )
