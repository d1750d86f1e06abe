"""Datetime utilities for timezone-aware UTC timestamps and display strings.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone
from typing import Optional, Union

DateLike = Union[datetime, str, None]

DEFAULT_DATE_FORMAT = "%b %d, %Y"
DATETIME_FORMAT = "%b %d, %Y - %I:%M %p"


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass a datetime through).

    Naive values are assumed to be UTC. Returns None for empty or invalid input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: DateLike, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date like ``Jan 05, 2026``; empty string for invalid input."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime(fmt)


def format_datetime(value: DateLike) -> str:
    """Format a date with time like ``Jan 05, 2026 - 03:30 PM``."""
    return format_date(value, DATETIME_FORMAT)


def relative_time(value: DateLike, now: Optional[datetime] = None) -> str:
    """Describe a timestamp relative to now ("2 hours ago", "in 3 days")."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""

    now = now or utc_now()
    seconds = (now - parsed).total_seconds()
    future = seconds < 0
    seconds = abs(seconds)

    if seconds < 45:
        phrase = "less than a minute"
    else:
        for unit_seconds, unit in (
            (365 * 86400, "year"),
            (30 * 86400, "month"),
            (86400, "day"),
            (3600, "hour"),
            (60, "minute"),
        ):
            if seconds >= unit_seconds:
                count = round(seconds / unit_seconds)
                phrase = f"{count} {unit}" + ("s" if count != 1 else "")
                break
        else:
            phrase = "1 minute"

    return f"in {phrase}" if future else f"{phrase} ago"


def is_past(value: DateLike, now: Optional[datetime] = None) -> bool:
    parsed = parse_datetime(value)
    if parsed is None:
        return False
    return parsed < (now or utc_now())


def is_future(value: DateLike, now: Optional[datetime] = None) -> bool:
    parsed = parse_datetime(value)
    if parsed is None:
        return False
    return parsed > (now or utc_now())
