"""Timestamp utilities for ReportFusion.

Report timestamps arrive from several upstream producers in mixed formats and
with or without timezone information. Always route them through
parse_timestamp() / ensure_utc() before comparing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as dateutil_parser


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are assumed to be UTC.

    Raises:
        TypeError: If value is not a datetime.
    """
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Union[str, int, float, datetime, None]) -> Optional[datetime]:
    """Parse an ISO 8601 string, epoch seconds/milliseconds, or datetime to UTC.

    Args:
        raw: Raw timestamp value from an upstream payload.

    Returns:
        Aware UTC datetime, or None if the value is empty or unparseable.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if isinstance(raw, (int, float)):
        seconds = raw / 1000.0 if raw > 1e11 else float(raw)  # epoch milliseconds
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        return ensure_utc(dateutil_parser.isoparse(str(raw).strip()))
    except (ValueError, OverflowError):
        pass
    try:
        return ensure_utc(dateutil_parser.parse(str(raw).strip()))
    except (ValueError, OverflowError, TypeError):
        return None


def hours_between(a: datetime, b: datetime) -> float:
    """Absolute difference between two datetimes in hours."""
    return abs((ensure_utc(a) - ensure_utc(b)).total_seconds()) / 3600.0


def days_since(moment: datetime, now: datetime) -> float:
    """Days elapsed from ``moment`` to ``now`` (negative if moment is in the future)."""
    return (ensure_utc(now) - ensure_utc(moment)).total_seconds() / 86400.0


def to_iso(value: Optional[datetime]) -> str:
    """Serialize a datetime as ISO 8601 UTC, or empty string for None."""
    if value is None:
        return ""
    return ensure_utc(value).isoformat()
