from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.datetime_utils import iter_weekday_in_month, month_bounds
from ..core.enums import HolidayReason
from .model import HolidayCalendarEntry, HolidayDecision
from .repository import HolidayExceptionRepository, PublicHolidayRepository, WeeklyHolidayRepository

logger = logging.getLogger(__name__)


class HolidayService:
    """Decides whether a day is a non-working day.

    Precedence, highest first: the user's own exception (in either
    direction), a public holiday, then any weekly rule whose enforced window
    contains the date.
    """

    def __init__(
        self,
        public_holidays: PublicHolidayRepository,
        weekly_holidays: WeeklyHolidayRepository,
        exceptions: HolidayExceptionRepository,
    ):
        self._public = public_holidays
        self._weekly = weekly_holidays
        self._exceptions = exceptions

    def decide(self, day: date, user_id: Optional[int] = None) -> HolidayDecision:
        if user_id is not None:
            exception = self._exceptions.find_exception(int(user_id), day)
            if exception is not None:
                return HolidayDecision(is_holiday=exception.override, reason=HolidayReason.EXCEPTION_OVERRIDE)

        if self._public.find_public_holiday(day) is not None:
            return HolidayDecision(is_holiday=True, reason=HolidayReason.PUBLIC_HOLIDAY)

        if any(rule.matches(day) for rule in self._weekly.list_weekly_rules()):
            return HolidayDecision(is_holiday=True, reason=HolidayReason.WEEKLY_HOLIDAY)

        return HolidayDecision(is_holiday=False, reason=HolidayReason.NONE)

    def list_month(self, year: int, month: int, user_id: Optional[int] = None) -> list[HolidayCalendarEntry]:
        """All holidays of the month in ascending date order, one entry per date."""
        start, end = month_bounds(int(year), int(month))

        reasons: dict[date, HolidayReason] = {}

        for rule in self._weekly.list_for_range(start, end):
            # enforced_from may fall before the month; check every occurrence.
            for day in iter_weekday_in_month(start.year, start.month, rule.weekday):
                if rule.matches(day):
                    reasons[day] = HolidayReason.WEEKLY_HOLIDAY

        for holiday in self._public.list_between(start, end):
            reasons[holiday.holiday_date] = HolidayReason.PUBLIC_HOLIDAY

        if user_id is not None:
            for exception in self._exceptions.list_for_user(int(user_id), start, end):
                if exception.override:
                    reasons[exception.exception_date] = HolidayReason.EXCEPTION_OVERRIDE
                else:
                    reasons.pop(exception.exception_date, None)

        entries = [HolidayCalendarEntry(date=day, reason=reason) for day, reason in sorted(reasons.items())]
        logger.debug("Holiday calendar %04d-%02d user=%s: %d entries", start.year, start.month, user_id, len(entries))
        return entries

    def list_public_holidays(self, year: Optional[int] = None):
        if year is None:
            return self._public.list_all()
        return self._public.list_between(date(int(year), 1, 1), date(int(year), 12, 31))
