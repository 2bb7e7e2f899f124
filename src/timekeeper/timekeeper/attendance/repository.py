from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, BreakRecord


class AttendanceRepository(Protocol):
    def find_by_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in_time: Optional[datetime],
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        clock_in_time: Optional[datetime],
        clock_out_time: Optional[datetime],
        total_work_hours: Optional[float],
    ) -> bool:
        raise NotImplementedError

    # Transactional variants used by approval write-back.
    def find_by_id_in_transaction(self, tx: Any, attendance_id: int) -> Optional[AttendanceRecord]:
        """Read and lock the row for the rest of the transaction."""

        raise NotImplementedError

    def update_in_transaction(
        self,
        tx: Any,
        *,
        attendance_id: int,
        clock_in_time: Optional[datetime],
        clock_out_time: Optional[datetime],
        total_work_hours: Optional[float],
    ) -> None:
        """The row is already locked; an unchanged row is not an error."""

        raise NotImplementedError


class BreakRecordRepository(Protocol):
    def find_by_attendance(self, attendance_id: int) -> Sequence[BreakRecord]:
        """Breaks ordered by start time."""

        raise NotImplementedError

    def find_active(self, attendance_id: int) -> Optional[BreakRecord]:
        raise NotImplementedError

    def create(self, *, attendance_id: int, break_start_time: datetime) -> int:
        raise NotImplementedError

    def update(self, *, break_id: int, break_end_time: datetime, duration_minutes: int) -> bool:
        raise NotImplementedError

    def delete_by_attendance(self, attendance_id: int) -> int:
        raise NotImplementedError

    def find_by_attendance_in_transaction(self, tx: Any, attendance_id: int) -> Sequence[BreakRecord]:
        raise NotImplementedError

    def create_in_transaction(
        self,
        tx: Any,
        *,
        attendance_id: int,
        break_start_time: datetime,
        break_end_time: Optional[datetime],
        duration_minutes: Optional[int],
    ) -> int:
        raise NotImplementedError

    def delete_in_transaction(self, tx: Any, attendance_id: int) -> int:
        """Delete every break of the attendance; returns the number removed."""

        raise NotImplementedError
