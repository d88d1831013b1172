"""Timestamp utilities for UTC handling.

Timestamps are stored in the database as ISO 8601 strings with a 'Z' suffix
and always handled as timezone-aware UTC datetimes in memory.
"""

from datetime import datetime, timezone
from typing import Optional

_STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for storage (ISO 8601, microseconds, 'Z' suffix).

    Example:
        >>> from datetime import datetime, timezone
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00.000000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(_STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back into a UTC datetime.

    Accepts values with or without microseconds and with a 'Z' suffix or an
    explicit offset. Returns None for empty or unparseable input.
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None
