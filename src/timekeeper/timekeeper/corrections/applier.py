from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..attendance.model import calculate_work_hours
from ..attendance.repository import AttendanceRepository, BreakRecordRepository
from .model import AttendanceCorrectionSnapshot
from .repository import CorrectionRequestRepository

logger = logging.getLogger(__name__)


class CorrectionApplier:
    """Rewrites the live attendance and breaks from an approved snapshot.

    Runs entirely inside the caller's transaction and never commits.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        breaks: BreakRecordRepository,
        requests: CorrectionRequestRepository,
    ):
        self._attendance = attendance
        self._breaks = breaks
        self._requests = requests

    def apply(
        self,
        tx: Any,
        *,
        request_id: int,
        attendance_id: int,
        proposed: AttendanceCorrectionSnapshot,
        approver_id: int,
        applied_at: datetime,
    ) -> int:
        hours = calculate_work_hours(
            proposed.clock_in_time,
            proposed.clock_out_time,
            (b.duration_minutes for b in proposed.breaks),
        )
        self._attendance.update_in_transaction(
            tx,
            attendance_id=attendance_id,
            clock_in_time=proposed.clock_in_time,
            clock_out_time=proposed.clock_out_time,
            total_work_hours=hours,
        )

        removed = self._breaks.delete_in_transaction(tx, attendance_id)
        for item in proposed.breaks:
            self._breaks.create_in_transaction(
                tx,
                attendance_id=attendance_id,
                break_start_time=item.break_start_time,
                break_end_time=item.break_end_time,
                duration_minutes=item.duration_minutes,
            )

        effective_id = self._requests.insert_effective_value_in_transaction(
            tx,
            attendance_id=attendance_id,
            source_request_id=request_id,
            snapshot=proposed,
            applied_by=approver_id,
            applied_at=applied_at,
        )
        logger.info(
            "Applied correction %s to attendance %s: %d breaks replaced by %d",
            request_id, attendance_id, removed, len(proposed.breaks),
        )
        return effective_id
