"""
Block recurring slots through the admin API.

    python scripts/block_slots.py --api http://localhost:8080 --days 30
    python scripts/block_slots.py --days 60 --dry-run

Schedule: Monday-Thursday 11:30-15:00, Sunday 09:00-20:00.
"""

import argparse
import sys, pathlib
import time
from datetime import datetime, timezone

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))

import httpx

from coach_calendar.services.slots import get_booking_config
from coach_calendar.services.slots.recurring import plan_weekly_blocks

DEFAULT_API_URL = "http://localhost:8080"


def block_slot(client: httpx.Client, api_url: str, slot_time: datetime) -> str:
    """POST one slot; returns "blocked", "skipped" or an error message."""
    resp = client.post(f"{api_url}/api/admin/block", json={"slot_time": slot_time.isoformat()})
    if resp.status_code in (200, 201):
        return "blocked"
    if resp.status_code == 409:
        try:
            reason = resp.json().get("reason")
        except ValueError:
            reason = None
        if reason == "already_blocked":
            return "skipped"
    return f"status {resp.status_code}: {resp.text}"


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--api", default=DEFAULT_API_URL, help="API base URL")
    parser.add_argument("--days", type=int, default=30, help="Number of days ahead to block")
    parser.add_argument("--dry-run", action="store_true", help="Only print what would be blocked")
    args = parser.parse_args()

    config = get_booking_config()
    today = datetime.now(timezone.utc).astimezone(config.zone).date()
    slots = plan_weekly_blocks(today, args.days, config=config)

    if not slots:
        print("No slots to block")
        return

    print(f"Total slots to block: {len(slots)}{' (dry run)' if args.dry_run else ''}")

    counts = {"blocked": 0, "skipped": 0, "failed": 0}
    api_url = args.api.rstrip("/")

    with httpx.Client(timeout=10.0) as client:
        for i, slot in enumerate(slots, start=1):
            label = f"[{i}/{len(slots)}] {slot:%a, %b %d %Y %H:%M %Z}"

            if args.dry_run:
                print(f"{label} would block")
                counts["blocked"] += 1
                continue

            try:
                result = block_slot(client, api_url, slot)
            except httpx.HTTPError as e:
                result = str(e)

            if result == "blocked":
                print(f"{label} blocked")
                counts["blocked"] += 1
            elif result == "skipped":
                print(f"{label} already blocked")
                counts["skipped"] += 1
            else:
                print(f"{label} FAILED: {result}")
                counts["failed"] += 1

            time.sleep(0.1)

    print(f"Blocked: {counts['blocked']}  Skipped: {counts['skipped']}  Failed: {counts['failed']}")
    if counts["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
