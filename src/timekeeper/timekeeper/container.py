from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_break_record_repository import MySQLBreakRecordRepository
from .attendance.repository import AttendanceRepository, BreakRecordRepository
from .attendance.service import AttendanceService
from .corrections.applier import CorrectionApplier
from .corrections.mysql_correction_repository import MySQLCorrectionRequestRepository
from .corrections.repository import CorrectionRequestRepository
from .corrections.service import CorrectionRequestService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import MySQLUnitOfWork
from .database.unit_of_work import UnitOfWork
from .holidays.admin_service import HolidayAdminService
from .holidays.mysql_holiday_exception_repository import MySQLHolidayExceptionRepository
from .holidays.mysql_public_holiday_repository import MySQLPublicHolidayRepository
from .holidays.mysql_weekly_holiday_repository import MySQLWeeklyHolidayRepository
from .holidays.repository import HolidayExceptionRepository, PublicHolidayRepository, WeeklyHolidayRepository
from .holidays.service import HolidayService


@dataclass(frozen=True)
class Container:
    conn: Any

    public_holidays_repo: PublicHolidayRepository
    weekly_holidays_repo: WeeklyHolidayRepository
    holiday_exceptions_repo: HolidayExceptionRepository
    attendance_repo: AttendanceRepository
    breaks_repo: BreakRecordRepository
    corrections_repo: CorrectionRequestRepository
    uow: UnitOfWork

    holiday_service: HolidayService
    holiday_admin_service: HolidayAdminService
    attendance_service: AttendanceService
    correction_service: CorrectionRequestService


def wire(
    *,
    conn: Any,
    public_holidays_repo: PublicHolidayRepository,
    weekly_holidays_repo: WeeklyHolidayRepository,
    holiday_exceptions_repo: HolidayExceptionRepository,
    attendance_repo: AttendanceRepository,
    breaks_repo: BreakRecordRepository,
    corrections_repo: CorrectionRequestRepository,
    uow: UnitOfWork,
) -> Container:
    """Build the services on top of already constructed repositories."""
    holiday_service = HolidayService(public_holidays_repo, weekly_holidays_repo, holiday_exceptions_repo)
    holiday_admin_service = HolidayAdminService(public_holidays_repo, weekly_holidays_repo, holiday_exceptions_repo)
    attendance_service = AttendanceService(attendance_repo, breaks_repo, holiday_service)
    correction_service = CorrectionRequestService(
        corrections_repo,
        attendance_repo,
        breaks_repo,
        uow,
        applier=CorrectionApplier(attendance_repo, breaks_repo, corrections_repo),
    )

    return Container(
        conn=conn,
        public_holidays_repo=public_holidays_repo,
        weekly_holidays_repo=weekly_holidays_repo,
        holiday_exceptions_repo=holiday_exceptions_repo,
        attendance_repo=attendance_repo,
        breaks_repo=breaks_repo,
        corrections_repo=corrections_repo,
        uow=uow,
        holiday_service=holiday_service,
        holiday_admin_service=holiday_admin_service,
        attendance_service=attendance_service,
        correction_service=correction_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    return wire(
        conn=conn,
        public_holidays_repo=MySQLPublicHolidayRepository(conn),
        weekly_holidays_repo=MySQLWeeklyHolidayRepository(conn),
        holiday_exceptions_repo=MySQLHolidayExceptionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        breaks_repo=MySQLBreakRecordRepository(conn),
        corrections_repo=MySQLCorrectionRequestRepository(conn),
        uow=MySQLUnitOfWork(conn),
    )
