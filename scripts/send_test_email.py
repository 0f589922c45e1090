"""
Send a sample booking confirmation using the SMTP settings from .env.

    python scripts/send_test_email.py --to someone@example.com --name "Jane Doe"
"""

import argparse
import sys, pathlib
from datetime import datetime, timedelta, timezone

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))

from coach_calendar.config import settings
from coach_calendar.errors import DependencyError
from coach_calendar.services.email import SmtpConfirmationSender
from coach_calendar.services.slots import get_booking_config


def main():
    parser = argparse.ArgumentParser(description="Send a test confirmation email")
    parser.add_argument("--to", required=True, help="Recipient email address")
    parser.add_argument("--name", default="Test User", help="Recipient name")
    parser.add_argument("--zoom", default=None, help="Zoom meeting link")
    args = parser.parse_args()

    if not settings.smtp_enabled:
        sys.exit("Email service is not configured: set SMTP_HOST, SMTP_PORT, SMTP_FROM, SMTP_PASSWORD")

    sender = SmtpConfirmationSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        from_addr=settings.smtp_from,
        password=settings.smtp_password,
        zone=get_booking_config().zone,
        from_name=settings.smtp_from_name,
        timeout=settings.smtp_timeout,
    )

    # tomorrow, top of the next hour
    slot_time = (datetime.now(timezone.utc) + timedelta(days=1)).replace(minute=0, second=0, microsecond=0)

    print(f"Sending test email to {args.to} ...")
    try:
        sender.send_confirmation(args.name, args.to, slot_time, args.zoom)
    except DependencyError as e:
        sys.exit(f"Failed: {e.message}")
    print("Sent")


if __name__ == "__main__":
    main()
