from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.validators import require_length_between, require_weekday
from ..core.actor import Actor
from ..core.constants import MAX_HOLIDAY_NAME_LENGTH, MAX_REASON_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from .repository import HolidayExceptionRepository, PublicHolidayRepository, WeeklyHolidayRepository

logger = logging.getLogger(__name__)


class HolidayAdminService:
    def __init__(
        self,
        public_holidays: PublicHolidayRepository,
        weekly_holidays: WeeklyHolidayRepository,
        exceptions: HolidayExceptionRepository,
    ):
        self._public = public_holidays
        self._weekly = weekly_holidays
        self._exceptions = exceptions

    # -------- Public holidays --------
    def create_public_holiday(
        self,
        *,
        actor: Actor,
        holiday_date: date,
        name: str,
        description: Optional[str] = None,
    ) -> int:
        actor.require_admin()
        name = require_length_between(name, "name", 1, MAX_HOLIDAY_NAME_LENGTH)
        description = (description or "").strip() or None

        holiday_id = self._public.create(holiday_date=holiday_date, name=name, description=description)
        logger.info("Public holiday %s created on %s by user %s", holiday_id, holiday_date, actor.user_id)
        return holiday_id

    def delete_public_holiday(self, *, actor: Actor, holiday_id: int) -> None:
        actor.require_admin()
        if not self._public.delete(int(holiday_id)):
            raise NotFoundError("Holiday not found")
        logger.info("Public holiday %s deleted by user %s", holiday_id, actor.user_id)

    # -------- Weekly rules --------
    def create_weekly_rule(
        self,
        *,
        actor: Actor,
        weekday: int,
        starts_on: date,
        ends_on: Optional[date] = None,
    ) -> int:
        actor.require_admin()
        weekday = require_weekday(weekday)
        if ends_on is not None and ends_on < starts_on:
            raise ValidationError("End date must be on or after the start date")

        rule_id = self._weekly.create(
            weekday=weekday,
            starts_on=starts_on,
            ends_on=ends_on,
            enforced_from=starts_on,
            enforced_to=ends_on,
            created_by=actor.user_id,
        )
        logger.info("Weekly holiday rule %s (weekday=%s from %s) created by user %s", rule_id, weekday, starts_on, actor.user_id)
        return rule_id

    def list_weekly_rules(self):
        return self._weekly.list_weekly_rules()

    def delete_weekly_rule(self, *, actor: Actor, rule_id: int) -> None:
        actor.require_admin()
        if not self._weekly.delete(int(rule_id)):
            raise NotFoundError("Weekly holiday not found")
        logger.info("Weekly holiday rule %s deleted by user %s", rule_id, actor.user_id)

    # -------- Per-user exceptions --------
    def create_exception(
        self,
        *,
        actor: Actor,
        user_id: int,
        exception_date: date,
        override: bool = False,
        reason: Optional[str] = None,
    ) -> int:
        actor.require_admin()
        reason = (reason or "").strip() or None
        if reason is not None and len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"reason must be at most {MAX_REASON_LENGTH} characters")

        exception_id = self._exceptions.create(
            user_id=int(user_id),
            exception_date=exception_date,
            override=bool(override),
            reason=reason,
            created_by=actor.user_id,
        )
        logger.info(
            "Holiday exception %s for user %s on %s (override=%s) created by user %s",
            exception_id, user_id, exception_date, override, actor.user_id,
        )
        return exception_id

    def list_exceptions(self, *, actor: Actor, user_id: int, start: Optional[date] = None, end: Optional[date] = None):
        actor.require_admin()
        return self._exceptions.list_for_user(int(user_id), start, end)

    def delete_exception(self, *, actor: Actor, exception_id: int, user_id: int) -> None:
        actor.require_admin()
        if not self._exceptions.delete(int(exception_id), int(user_id)):
            raise NotFoundError("Holiday exception not found")
        logger.info("Holiday exception %s for user %s deleted by user %s", exception_id, user_id, actor.user_id)
