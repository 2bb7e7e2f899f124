from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import HolidayException, PublicHoliday, WeeklyHolidayRule


class PublicHolidayRepository(Protocol):
    def find_public_holiday(self, holiday_date: date) -> Optional[PublicHoliday]:
        raise NotImplementedError

    def list_between(self, start: date, end: date) -> Sequence[PublicHoliday]:
        raise NotImplementedError

    def list_all(self) -> Sequence[PublicHoliday]:
        raise NotImplementedError

    def create(self, *, holiday_date: date, name: str, description: Optional[str]) -> int:
        """Insert and return the new id; a duplicate date raises ``ConflictError``."""

        raise NotImplementedError

    def delete(self, holiday_id: int) -> bool:
        raise NotImplementedError


class WeeklyHolidayRepository(Protocol):
    def list_weekly_rules(self) -> Sequence[WeeklyHolidayRule]:
        raise NotImplementedError

    def list_for_range(self, start: date, end: date) -> Sequence[WeeklyHolidayRule]:
        """Rules whose enforced window overlaps ``[start, end]``."""

        raise NotImplementedError

    def create(
        self,
        *,
        weekday: int,
        starts_on: date,
        ends_on: Optional[date],
        enforced_from: date,
        enforced_to: Optional[date],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def delete(self, rule_id: int) -> bool:
        raise NotImplementedError


class HolidayExceptionRepository(Protocol):
    def find_exception(self, user_id: int, exception_date: date) -> Optional[HolidayException]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[HolidayException]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        exception_date: date,
        override: bool,
        reason: Optional[str],
        created_by: int,
    ) -> int:
        """Insert and return the new id; a duplicate (user, date) raises ``ConflictError``."""

        raise NotImplementedError

    def delete(self, exception_id: int, user_id: int) -> bool:
        raise NotImplementedError
