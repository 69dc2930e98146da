"""Datetime utilities with consistent UTC timezone handling.

This module provides centralized datetime functions to ensure all datetime
operations in DevTask are timezone-aware and use UTC consistently.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union


def now_utc() -> datetime:
    """Return current datetime in UTC timezone.

    Returns:
        Current datetime with timezone=UTC
    """
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware, assuming UTC if naive.

    Args:
        dt: Datetime to check/convert, or None

    Returns:
        Timezone-aware datetime in UTC, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    # Already timezone-aware
    return dt


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string with timezone info.

    Args:
        dt: Datetime to convert, or None

    Returns:
        ISO format string with timezone, or None if input was None
    """
    if dt is None:
        return None

    aware_dt = ensure_aware(dt)
    return aware_dt.isoformat()


def coerce_datetime(value: Union[None, str, date, datetime]) -> Optional[datetime]:
    """Turn a stored value (ISO string, date or datetime) into an aware datetime.

    YAML loaders hand back ``datetime`` or ``date`` objects for unquoted
    timestamps and plain strings for quoted ones, so all three are accepted.

    Raises:
        ValueError: If a string value is not an ISO date/datetime
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return ensure_aware(datetime.fromisoformat(value.strip()))
    raise ValueError(f"Unsupported datetime value: {value!r}")


def subtract_months(dt: datetime, months: int) -> datetime:
    """Move ``dt`` back by whole calendar months, clamping the day.

    March 31 minus one month is the last day of February.
    """
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))


def week_cutoff(now: datetime) -> datetime:
    """Start of the trailing seven-day window ending at ``now``."""
    return ensure_aware(now) - timedelta(days=7)


def month_cutoff(now: datetime) -> datetime:
    """Start of the trailing one-calendar-month window ending at ``now``."""
    return subtract_months(ensure_aware(now), 1)


DEFAULT_DATE_FORMAT = "%Y-%m-%d"


def format_date(
    dt: Optional[datetime], missing: str = "N/A", fmt: str = DEFAULT_DATE_FORMAT
) -> str:
    """Format a datetime with the strftime pattern ``fmt`` or return ``missing``."""
    if dt is None:
        return missing
    return dt.strftime(fmt)


def format_timestamp(dt: datetime) -> str:
    """Long human-readable timestamp used in report headers."""
    aware = ensure_aware(dt)
    return aware.strftime("%B %d, %Y at %H:%M %Z").strip()
