from __future__ import annotations

from datetime import date

import pytest

from src.timekeeper.timekeeper.core.enums import HolidayReason
from src.timekeeper.timekeeper.core.exceptions import ValidationError
from src.timekeeper.timekeeper.holidays.service import HolidayService

from tests.fakes import FakeHolidayExceptionRepo, FakePublicHolidayRepo, FakeWeeklyHolidayRepo, InMemoryDB


def _service():
    db = InMemoryDB()
    public = FakePublicHolidayRepo(db)
    weekly = FakeWeeklyHolidayRepo(db)
    exceptions = FakeHolidayExceptionRepo(db)
    return HolidayService(public, weekly, exceptions), public, weekly, exceptions


def _wednesday_rule(weekly, enforced_from=date(2025, 1, 1), enforced_to=None):
    return weekly.create(
        weekday=2,
        starts_on=enforced_from,
        ends_on=enforced_to,
        enforced_from=enforced_from,
        enforced_to=enforced_to,
        created_by=1,
    )


def test_weekly_rule_makes_matching_weekday_a_holiday():
    service, _, weekly, _ = _service()
    _wednesday_rule(weekly)

    decision = service.decide(date(2025, 1, 8))

    assert decision.is_holiday is True
    assert decision.reason == HolidayReason.WEEKLY_HOLIDAY


def test_weekly_rule_ignores_days_outside_enforced_window():
    service, _, weekly, _ = _service()
    _wednesday_rule(weekly, enforced_from=date(2025, 1, 10), enforced_to=date(2025, 1, 20))

    assert service.decide(date(2025, 1, 8)).is_holiday is False
    assert service.decide(date(2025, 1, 15)).is_holiday is True
    assert service.decide(date(2025, 1, 22)).is_holiday is False


def test_public_holiday_wins_over_weekly_rule():
    service, public, weekly, _ = _service()
    _wednesday_rule(weekly)
    public.create(holiday_date=date(2025, 1, 8), name="Founders Day", description=None)

    decision = service.decide(date(2025, 1, 8))

    assert decision.is_holiday is True
    assert decision.reason == HolidayReason.PUBLIC_HOLIDAY


def test_working_day_exception_overrides_public_holiday():
    service, public, _, exceptions = _service()
    public.create(holiday_date=date(2025, 1, 1), name="New Year", description=None)
    exceptions.create(user_id=7, exception_date=date(2025, 1, 1), override=False, reason="on call", created_by=1)

    decision = service.decide(date(2025, 1, 1), 7)

    assert decision.is_holiday is False
    assert decision.reason == HolidayReason.EXCEPTION_OVERRIDE
    # Other users still get the public holiday.
    assert service.decide(date(2025, 1, 1), 8).reason == HolidayReason.PUBLIC_HOLIDAY
    assert service.decide(date(2025, 1, 1)).reason == HolidayReason.PUBLIC_HOLIDAY


def test_forced_holiday_exception_on_plain_working_day():
    service, _, _, exceptions = _service()
    exceptions.create(user_id=7, exception_date=date(2025, 1, 9), override=True, reason=None, created_by=1)

    decision = service.decide(date(2025, 1, 9), 7)

    assert decision.is_holiday is True
    assert decision.reason == HolidayReason.EXCEPTION_OVERRIDE


def test_plain_day_is_working_day():
    service, _, _, _ = _service()

    decision = service.decide(date(2025, 1, 9), 7)

    assert decision.is_holiday is False
    assert decision.reason == HolidayReason.NONE
    assert decision.reason.label == "working day"


def test_list_month_merges_sources_sorted_and_unique():
    service, public, weekly, exceptions = _service()
    _wednesday_rule(weekly, enforced_from=date(2024, 12, 1))
    public.create(holiday_date=date(2025, 1, 1), name="New Year", description=None)
    public.create(holiday_date=date(2025, 1, 20), name="Other", description=None)
    exceptions.create(user_id=7, exception_date=date(2025, 1, 15), override=False, reason=None, created_by=1)
    exceptions.create(user_id=7, exception_date=date(2025, 1, 17), override=True, reason=None, created_by=1)

    entries = service.list_month(2025, 1, 7)

    assert [(e.date, e.reason) for e in entries] == [
        (date(2025, 1, 1), HolidayReason.PUBLIC_HOLIDAY),
        (date(2025, 1, 8), HolidayReason.WEEKLY_HOLIDAY),
        (date(2025, 1, 17), HolidayReason.EXCEPTION_OVERRIDE),
        (date(2025, 1, 20), HolidayReason.PUBLIC_HOLIDAY),
        (date(2025, 1, 22), HolidayReason.WEEKLY_HOLIDAY),
        (date(2025, 1, 29), HolidayReason.WEEKLY_HOLIDAY),
    ]


def test_list_month_agrees_with_decide_for_every_day():
    service, public, weekly, exceptions = _service()
    _wednesday_rule(weekly, enforced_from=date(2025, 2, 10), enforced_to=date(2025, 2, 20))
    public.create(holiday_date=date(2025, 2, 3), name="Spring", description=None)
    exceptions.create(user_id=3, exception_date=date(2025, 2, 12), override=False, reason=None, created_by=1)

    listed = {e.date: e.reason for e in service.list_month(2025, 2, 3)}

    for day in range(1, 29):
        d = date(2025, 2, day)
        decision = service.decide(d, 3)
        assert (d in listed) == decision.is_holiday
        if decision.is_holiday:
            assert listed[d] == decision.reason


def test_list_month_without_user_skips_exceptions():
    service, _, _, exceptions = _service()
    exceptions.create(user_id=7, exception_date=date(2025, 1, 17), override=True, reason=None, created_by=1)

    assert service.list_month(2025, 1) == []


@pytest.mark.parametrize("year, month", [(2025, 0), (2025, 13), (0, 5)])
def test_list_month_rejects_invalid_month(year, month):
    service, _, _, _ = _service()

    with pytest.raises(ValidationError):
        service.list_month(year, month)


def test_list_public_holidays_filters_by_year():
    service, public, _, _ = _service()
    public.create(holiday_date=date(2024, 12, 25), name="Xmas", description=None)
    public.create(holiday_date=date(2025, 1, 1), name="New Year", description=None)

    assert [h.name for h in service.list_public_holidays(2025)] == ["New Year"]
    assert len(service.list_public_holidays()) == 2
