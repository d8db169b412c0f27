"""
Datetime utilities for consistent timezone handling across the application.

All timestamps are stored in UTC. User-facing messages are rendered in
Western Indonesia Time (UTC+7), the timezone the clinics operate in.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

# Western Indonesia Time (UTC+7)
JAKARTA_TZ = timezone(timedelta(hours=7))


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in UTC.

    Some drivers (SQLite) hand back naive datetimes; those are stored in UTC,
    so a naive value is interpreted as UTC.

    Args:
        dt: Datetime to normalize

    Returns:
        Timezone-aware UTC datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_display_date(dt: datetime) -> str:
    """Format a datetime as DD/MM/YYYY in Jakarta time."""
    local = ensure_utc(dt)
    assert local is not None
    return local.astimezone(JAKARTA_TZ).strftime("%d/%m/%Y")


def format_display_datetime(dt: datetime) -> str:
    """Format a datetime as DD/MM/YYYY HH:MM in Jakarta time."""
    local = ensure_utc(dt)
    assert local is not None
    return local.astimezone(JAKARTA_TZ).strftime("%d/%m/%Y %H:%M")
