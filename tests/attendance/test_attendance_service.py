from __future__ import annotations

from datetime import date, datetime

import pytest

from src.timekeeper.timekeeper.attendance.model import calculate_work_hours
from src.timekeeper.timekeeper.attendance.service import AttendanceService, attendance_to_dict
from src.timekeeper.timekeeper.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.timekeeper.timekeeper.holidays.service import HolidayService

from tests.fakes import (
    FakeAttendanceRepo,
    FakeBreakRepo,
    FakeHolidayExceptionRepo,
    FakePublicHolidayRepo,
    FakeWeeklyHolidayRepo,
    InMemoryDB,
)

USER_ID = 2


class World:
    def __init__(self):
        db = InMemoryDB()
        self.public = FakePublicHolidayRepo(db)
        self.weekly = FakeWeeklyHolidayRepo(db)
        self.exceptions = FakeHolidayExceptionRepo(db)
        self.attendance = FakeAttendanceRepo(db)
        self.breaks = FakeBreakRepo(db)
        holidays = HolidayService(self.public, self.weekly, self.exceptions)
        self.service = AttendanceService(self.attendance, self.breaks, holidays)


@pytest.fixture()
def world():
    return World()


def test_full_working_day_computes_hours(world):
    service = world.service
    service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))
    service.start_break(USER_ID, now=datetime(2025, 1, 9, 12, 0))
    service.end_break(USER_ID, now=datetime(2025, 1, 9, 12, 45))

    record = service.clock_out(USER_ID, now=datetime(2025, 1, 9, 18, 0))

    assert record.clock_out_time == datetime(2025, 1, 9, 18, 0)
    assert record.total_work_hours == pytest.approx(8.25)
    day = service.get_day(USER_ID, date(2025, 1, 9))
    assert day["break_records"][0]["duration_minutes"] == 45


def test_clock_in_on_weekly_holiday_is_forbidden(world):
    world.weekly.create(
        weekday=2,
        starts_on=date(2025, 1, 1),
        ends_on=None,
        enforced_from=date(2025, 1, 1),
        enforced_to=None,
        created_by=1,
    )

    with pytest.raises(AuthorizationError) as exc:
        world.service.clock_in(USER_ID, now=datetime(2025, 1, 8, 9, 0))

    assert "weekly holiday" in str(exc.value)
    assert world.attendance.find_by_user_and_date(USER_ID, date(2025, 1, 8)) is None


def test_working_day_exception_allows_clock_in_on_public_holiday(world):
    world.public.create(holiday_date=date(2025, 1, 1), name="New Year", description=None)
    world.exceptions.create(user_id=USER_ID, exception_date=date(2025, 1, 1), override=False, reason=None, created_by=1)

    record = world.service.clock_in(USER_ID, now=datetime(2025, 1, 1, 9, 0))

    assert record.clock_in_time == datetime(2025, 1, 1, 9, 0)


def test_forced_holiday_blocks_clock_out(world):
    world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))
    world.exceptions.create(user_id=USER_ID, exception_date=date(2025, 1, 9), override=True, reason=None, created_by=1)

    with pytest.raises(AuthorizationError, match="forced holiday"):
        world.service.clock_out(USER_ID, now=datetime(2025, 1, 9, 17, 0))


def test_double_clock_in_is_rejected(world):
    world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))

    with pytest.raises(ValidationError):
        world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 5))


def test_clock_out_without_record_is_not_found(world):
    with pytest.raises(NotFoundError):
        world.service.clock_out(USER_ID, now=datetime(2025, 1, 9, 17, 0))


def test_clock_out_during_break_is_rejected(world):
    world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))
    world.service.start_break(USER_ID, now=datetime(2025, 1, 9, 12, 0))

    with pytest.raises(ValidationError):
        world.service.clock_out(USER_ID, now=datetime(2025, 1, 9, 17, 0))


def test_only_one_open_break(world):
    world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))
    world.service.start_break(USER_ID, now=datetime(2025, 1, 9, 12, 0))

    with pytest.raises(ValidationError):
        world.service.start_break(USER_ID, now=datetime(2025, 1, 9, 12, 5))


def test_end_break_without_open_break(world):
    world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))

    with pytest.raises(ValidationError):
        world.service.end_break(USER_ID, now=datetime(2025, 1, 9, 12, 5))


@pytest.mark.parametrize(
    "clock_in, clock_out, breaks, expected",
    [
        (datetime(2025, 1, 8, 9, 0), datetime(2025, 1, 8, 19, 0), [60], 9.0),
        (datetime(2025, 1, 8, 9, 0), datetime(2025, 1, 8, 10, 0), [90], 0.0),
        (datetime(2025, 1, 8, 9, 0), datetime(2025, 1, 8, 10, 0), [-30, None], 1.0),
        (datetime(2025, 1, 8, 9, 0, 0), datetime(2025, 1, 8, 9, 30, 59), [], 0.5),
        (datetime(2025, 1, 8, 9, 0), None, [], None),
    ],
)
def test_calculate_work_hours(clock_in, clock_out, breaks, expected):
    assert calculate_work_hours(clock_in, clock_out, breaks) == expected


def test_attendance_to_dict_shape(world):
    record = world.service.clock_in(USER_ID, now=datetime(2025, 1, 9, 9, 0))

    data = attendance_to_dict(record)

    assert data["date"] == "2025-01-09"
    assert data["clock_in_time"] == "2025-01-09T09:00:00"
    assert data["clock_out_time"] is None
    assert data["break_records"] == []
