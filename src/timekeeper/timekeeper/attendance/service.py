from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from ..holidays.service import HolidayService
from .model import AttendanceRecord, break_duration_minutes, calculate_work_hours
from .repository import AttendanceRepository, BreakRecordRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        breaks: BreakRecordRepository,
        holidays: HolidayService,
    ):
        self._attendance = attendance
        self._breaks = breaks
        self._holidays = holidays

    def _reject_if_holiday(self, work_date: date, user_id: int) -> None:
        decision = self._holidays.decide(work_date, user_id)
        if decision.is_holiday:
            raise AuthorizationError(
                f"{work_date.isoformat()} is a {decision.reason.label}. "
                "Submit an overtime request before clocking in/out."
            )

    def _require_record(self, user_id: int, work_date: date) -> AttendanceRecord:
        record = self._attendance.find_by_user_and_date(user_id, work_date)
        if not record:
            raise NotFoundError("No attendance record found for today")
        return record

    def _reload(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.find_by_id(attendance_id)
        if not record:
            raise StorageError("Attendance record disappeared after write")
        return record

    def clock_in(self, user_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        self._reject_if_holiday(today, user_id)

        existing = self._attendance.find_by_user_and_date(user_id, today)
        if existing:
            if existing.clock_in_time is not None:
                raise ValidationError("Already clocked in today")
            self._attendance.update(
                attendance_id=existing.attendance_id,
                clock_in_time=now,
                clock_out_time=existing.clock_out_time,
                total_work_hours=existing.total_work_hours,
            )
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._attendance.create(user_id=user_id, work_date=today, clock_in_time=now)

        logger.info("User %s clocked in at %s", user_id, now)
        return self._reload(attendance_id)

    def clock_out(self, user_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        self._reject_if_holiday(today, user_id)

        record = self._require_record(user_id, today)
        if record.is_clocked_out:
            raise ValidationError("Already clocked out today")
        if record.clock_in_time is None:
            raise ValidationError("Must clock in before clocking out")
        if self._breaks.find_active(record.attendance_id) is not None:
            raise ValidationError("Break in progress. End break before clocking out")

        breaks = self._breaks.find_by_attendance(record.attendance_id)
        hours = calculate_work_hours(record.clock_in_time, now, (b.duration_minutes for b in breaks))
        self._attendance.update(
            attendance_id=record.attendance_id,
            clock_in_time=record.clock_in_time,
            clock_out_time=now,
            total_work_hours=hours,
        )
        logger.info("User %s clocked out at %s (%.2f h)", user_id, now, hours or 0.0)
        return self._reload(record.attendance_id)

    def start_break(self, user_id: int, *, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        record = self._require_record(user_id, now.date())
        if not record.is_clocked_in:
            raise ValidationError("Must be clocked in to start break")
        if self._breaks.find_active(record.attendance_id) is not None:
            raise ValidationError("A break is already in progress")
        return self._breaks.create(attendance_id=record.attendance_id, break_start_time=now)

    def end_break(self, user_id: int, *, now: Optional[datetime] = None) -> None:
        now = now or now_local()
        record = self._require_record(user_id, now.date())
        active = self._breaks.find_active(record.attendance_id)
        if active is None:
            raise ValidationError("No break in progress")
        if now < active.break_start_time:
            raise ValidationError("break_end_time must be later than break_start_time")
        self._breaks.update(
            break_id=active.break_id,
            break_end_time=now,
            duration_minutes=break_duration_minutes(active.break_start_time, now) or 0,
        )

    def get_day(self, user_id: int, work_date: date) -> dict:
        record = self._require_record(user_id, work_date)
        breaks = self._breaks.find_by_attendance(record.attendance_id)
        return attendance_to_dict(record, breaks)


def attendance_to_dict(record: AttendanceRecord, breaks=()) -> dict:
    return {
        "id": record.attendance_id,
        "user_id": record.user_id,
        "date": record.work_date.isoformat(),
        "clock_in_time": record.clock_in_time.isoformat() if record.clock_in_time else None,
        "clock_out_time": record.clock_out_time.isoformat() if record.clock_out_time else None,
        "status": record.status.value,
        "total_work_hours": record.total_work_hours,
        "break_records": [
            {
                "id": b.break_id,
                "break_start_time": b.break_start_time.isoformat(),
                "break_end_time": b.break_end_time.isoformat() if b.break_end_time else None,
                "duration_minutes": b.duration_minutes,
            }
            for b in breaks
        ],
    }
