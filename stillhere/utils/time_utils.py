"""Time and timezone utilities."""

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from dateutil import tz as dateutil_tz

from stillhere.utils.constants import NEVER_CHECKED_IN


def resolve_timezone(name: str) -> tzinfo:
    """Resolve a timezone name, falling back to the host's local zone."""
    if not name:
        return dateutil_tz.tzlocal()
    return ZoneInfo(name)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(ZoneInfo("UTC"))


def to_local(dt: datetime, zone: tzinfo) -> datetime:
    """Convert a datetime to the given zone (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(zone)


def is_same_local_day(a: datetime, b: datetime, zone: tzinfo) -> bool:
    """Check if two instants fall on the same calendar day in ``zone``."""
    return to_local(a, zone).date() == to_local(b, zone).date()


def elapsed_days(since: datetime | None, now: datetime) -> int:
    """Whole days elapsed between ``since`` and ``now``.

    Counts complete 24-hour periods, so 47h59m is still 1 day. Returns
    NEVER_CHECKED_IN when ``since`` is None and 0 when ``since`` is in the
    future (clock skew).
    """
    if since is None:
        return NEVER_CHECKED_IN

    delta = now - since
    if delta < timedelta(0):
        return 0
    return delta // timedelta(days=1)


def format_elapsed_days(days: int) -> str:
    """Format an elapsed-day count for messages.

    Examples:
        0 -> "less than a day"
        1 -> "1 day"
        3 -> "3 days"
        NEVER_CHECKED_IN -> "never"
    """
    if days == NEVER_CHECKED_IN:
        return "never"
    if days <= 0:
        return "less than a day"
    return f"{days} day{'s' if days != 1 else ''}"


def format_relative_time(dt: datetime, now: datetime | None = None) -> str:
    """Format a past datetime relative to now.

    Examples:
        "just now"
        "5 minutes ago"
        "2 hours ago"
        "3 days ago"
    """
    if now is None:
        now = utcnow()

    total_seconds = (now - dt).total_seconds()

    if total_seconds < 60:
        return "just now"
    elif total_seconds < 3600:
        minutes = int(total_seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    elif total_seconds < 86400:
        hours = int(total_seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    else:
        days = int(total_seconds / 86400)
        return f"{days} day{'s' if days != 1 else ''} ago"
