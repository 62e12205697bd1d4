"""Datetime utilities for common operations."""

from datetime import datetime, date, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Get current date in UTC."""
    return datetime.now(timezone.utc).date()


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Make a datetime timezone aware.

    Some backends (SQLite) hand back naive datetimes; they are stored in UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def shift_months(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return (year, month) moved by ``delta`` calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    """Histogram label, e.g. ``2024-3`` (month not zero padded)."""
    return f"{year}-{month}"
