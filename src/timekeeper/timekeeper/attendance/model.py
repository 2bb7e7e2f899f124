from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from ..common.datetime_utils import whole_minutes
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one day."""

    attendance_id: int
    user_id: int
    work_date: date
    clock_in_time: Optional[datetime]
    clock_out_time: Optional[datetime]
    status: AttendanceStatus
    total_work_hours: Optional[float] = None

    @property
    def is_clocked_in(self) -> bool:
        return self.clock_in_time is not None and self.clock_out_time is None

    @property
    def is_clocked_out(self) -> bool:
        return self.clock_out_time is not None


@dataclass(frozen=True)
class BreakRecord:
    break_id: int
    attendance_id: int
    break_start_time: datetime
    break_end_time: Optional[datetime]
    duration_minutes: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.break_end_time is None


def break_duration_minutes(start: datetime, end: Optional[datetime]) -> Optional[int]:
    if end is None:
        return None
    return whole_minutes(start, end)


def calculate_work_hours(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    break_minutes: Iterable[Optional[int]],
) -> Optional[float]:
    """Worked hours: clock span minus breaks, in whole minutes divided by 60.

    Each break is clamped at zero and so is the result. Returns None until
    both clock times exist.
    """
    if clock_in is None or clock_out is None:
        return None
    total_break = sum(max(0, m or 0) for m in break_minutes)
    net = max(0, whole_minutes(clock_in, clock_out) - total_break)
    return net / 60.0
