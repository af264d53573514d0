from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


def today_in(timezone: ZoneInfo, now: datetime | None = None) -> date:
    """Calendar day in the given timezone. Booking logic never compares instants."""
    if now is None:
        now = datetime.now(timezone)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone)
    return now.date()


def parse_day(value: object) -> date | None:
    """Parse a YYYY-MM-DD calendar day. Returns None for anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def display_day(day: date) -> str:
    # M/D/YYYY
    return f"{day.month}/{day.day}/{day.year}"
