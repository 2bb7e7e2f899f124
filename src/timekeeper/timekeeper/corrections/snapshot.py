from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from ..attendance.model import AttendanceRecord, BreakRecord
from ..attendance.repository import AttendanceRepository, BreakRecordRepository
from ..core.exceptions import NotFoundError, ValidationError
from .model import AttendanceCorrectionSnapshot, CorrectionBreakItem, CorrectionChanges


def build_snapshot(attendance: AttendanceRecord, breaks: Iterable[BreakRecord]) -> AttendanceCorrectionSnapshot:
    """Capture the record's current clock times and its breaks in stored order."""
    return AttendanceCorrectionSnapshot(
        clock_in_time=attendance.clock_in_time,
        clock_out_time=attendance.clock_out_time,
        breaks=tuple(
            CorrectionBreakItem(break_start_time=b.break_start_time, break_end_time=b.break_end_time)
            for b in breaks
        ),
    )


def build_proposed_snapshot(
    original: AttendanceCorrectionSnapshot,
    changes: CorrectionChanges,
) -> AttendanceCorrectionSnapshot:
    # Clock times fall back field by field; breaks are replaced wholesale.
    return AttendanceCorrectionSnapshot(
        clock_in_time=changes.clock_in_time if changes.clock_in_time is not None else original.clock_in_time,
        clock_out_time=changes.clock_out_time if changes.clock_out_time is not None else original.clock_out_time,
        breaks=changes.breaks if changes.breaks is not None else original.breaks,
    )


def validate_snapshot(snapshot: AttendanceCorrectionSnapshot) -> None:
    """Temporal checks on a proposed snapshot.

    Overlap between breaks is not checked.
    """
    clock_in = snapshot.clock_in_time
    if clock_in is None:
        raise ValidationError("clock_in_time is required")

    clock_out = snapshot.clock_out_time
    if clock_out is not None and clock_out < clock_in:
        raise ValidationError("clock_out_time must be later than clock_in_time")

    for br in snapshot.breaks:
        if br.break_start_time < clock_in:
            raise ValidationError("break_start_time must be later than clock_in_time")
        end = br.break_end_time
        if end is None:
            continue
        if end < br.break_start_time:
            raise ValidationError("break_end_time must be later than break_start_time")
        if clock_out is not None and end > clock_out:
            raise ValidationError("break_end_time must be earlier than clock_out_time")


class SnapshotReader:
    """Reads an attendance record with its breaks and captures both as a snapshot."""

    def __init__(self, attendance: AttendanceRepository, breaks: BreakRecordRepository):
        self._attendance = attendance
        self._breaks = breaks

    def capture(self, user_id: int, work_date: date) -> tuple[AttendanceRecord, AttendanceCorrectionSnapshot]:
        record = self._attendance.find_by_user_and_date(int(user_id), work_date)
        if not record:
            raise NotFoundError("No attendance record found for specified date")
        return record, build_snapshot(record, self._breaks.find_by_attendance(record.attendance_id))

    def capture_in_transaction(self, tx: Any, attendance_id: int) -> tuple[AttendanceRecord, AttendanceCorrectionSnapshot]:
        record = self._attendance.find_by_id_in_transaction(tx, int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        breaks = self._breaks.find_by_attendance_in_transaction(tx, record.attendance_id)
        return record, build_snapshot(record, breaks)
