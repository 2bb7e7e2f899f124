from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_local_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a naive local timestamp such as ``2025-01-08T09:00:00``."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is not None:
        raise ValidationError(f"Timestamp must be a local time without offset: {value!r}")
    return parsed


def format_local_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    if month < 1 or month > 12 or year < 1 or year > 9999:
        raise ValidationError(f"invalid year/month: {year}/{month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_weekday_in_month(year: int, month: int, weekday: int):
    """Yield every date in the month falling on ``weekday`` (Monday=0)."""
    start, end = month_bounds(year, month)
    current = start + timedelta(days=(weekday - start.weekday()) % 7)
    while current <= end:
        yield current
        current += timedelta(days=7)


def whole_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)
