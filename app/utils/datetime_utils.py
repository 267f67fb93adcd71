# =============================================================================
# File: app/utils/datetime_utils.py
# Description: UTC datetime helpers shared by storage, cache and event code
# =============================================================================

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and 'Z' suffix."""
    return to_iso(utc_now())


def to_iso(dt: datetime) -> str:
    """
    Format a datetime as ISO 8601 with millisecond precision and 'Z' suffix.

    Naive datetimes are taken to be UTC (MongoDB returns naive UTC values).

    Examples:
        >>> to_iso(datetime(2025, 11, 25, 0, 54, 40, 123456, tzinfo=timezone.utc))
        '2025-11-25T00:54:40.123Z'
    """
    dt = ensure_utc(dt).astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime has UTC timezone."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


# =============================================================================
# EOF
# =============================================================================
