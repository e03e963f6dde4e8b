"""Date and time utility functions."""

import re
from datetime import datetime, timezone

UTC_TZ = timezone.utc

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC_TZ)


def utc_today_iso(now: datetime | None = None) -> str:
    """Current calendar date in UTC as YYYY-MM-DD."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC_TZ)
    return now.astimezone(UTC_TZ).date().isoformat()


def utc_time_of_day(now: datetime | None = None) -> str:
    """Current UTC wall-clock time as HH:MM:SS."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC_TZ)
    return now.astimezone(UTC_TZ).strftime("%H:%M:%S")


def resolve_logged_date(logged_date: str | None, now: datetime | None = None) -> str:
    """
    Pick the calendar date a scan is logged under.

    Args:
        logged_date: Client-supplied date; used only if it is YYYY-MM-DD
        now: Reference time (defaults to now)

    Returns:
        Date string in YYYY-MM-DD format
    """
    if isinstance(logged_date, str) and ISO_DATE_RE.match(logged_date):
        return logged_date
    return utc_today_iso(now)
