from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import HolidayReason


@dataclass(frozen=True)
class PublicHoliday:
    holiday_id: int
    holiday_date: date
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class WeeklyHolidayRule:
    """Every ``weekday`` (Monday=0) inside the enforced window is a non-working day.

    ``starts_on``/``ends_on`` are the dates the administrator entered and are
    kept as metadata; only ``enforced_from``/``enforced_to`` drive matching.
    """

    rule_id: int
    weekday: int
    starts_on: date
    ends_on: Optional[date]
    enforced_from: date
    enforced_to: Optional[date]
    created_by: int
    created_at: datetime

    def matches(self, day: date) -> bool:
        if day.weekday() != self.weekday:
            return False
        if day < self.enforced_from:
            return False
        if self.enforced_to is not None and day > self.enforced_to:
            return False
        return True

    def overlaps(self, start: date, end: date) -> bool:
        return self.enforced_from <= end and (self.enforced_to is None or self.enforced_to >= start)


@dataclass(frozen=True)
class HolidayException:
    """Per-user override: ``override=True`` forces a holiday, ``False`` a working day."""

    exception_id: int
    user_id: int
    exception_date: date
    override: bool
    reason: Optional[str]
    created_by: int
    created_at: datetime


@dataclass(frozen=True)
class HolidayDecision:
    is_holiday: bool
    reason: HolidayReason


@dataclass(frozen=True)
class HolidayCalendarEntry:
    date: date
    reason: HolidayReason

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "is_holiday": True, "reason": self.reason.value}
