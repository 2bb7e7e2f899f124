from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..attendance.model import break_duration_minutes
from ..common.datetime_utils import format_local_datetime, parse_local_datetime
from ..core.enums import CorrectionStatus
from ..core.exceptions import StorageError, ValidationError


@dataclass(frozen=True)
class CorrectionBreakItem:
    break_start_time: datetime
    break_end_time: Optional[datetime] = None

    @property
    def duration_minutes(self) -> Optional[int]:
        return break_duration_minutes(self.break_start_time, self.break_end_time)

    def to_dict(self) -> dict:
        return {
            "break_start_time": format_local_datetime(self.break_start_time),
            "break_end_time": format_local_datetime(self.break_end_time),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CorrectionBreakItem":
        if not isinstance(data, dict) or data.get("break_start_time") is None:
            raise ValidationError("Each break needs a break_start_time")
        return cls(
            break_start_time=parse_local_datetime(data["break_start_time"]),
            break_end_time=parse_local_datetime(data.get("break_end_time")),
        )


@dataclass(frozen=True)
class AttendanceCorrectionSnapshot:
    """Immutable clock-in/out and ordered break set at one point in time.

    Equality is structural; the JSON document form is
    ``{"clock_in_time", "clock_out_time", "breaks": [...]}`` with naive
    ISO-8601 local timestamps.
    """

    clock_in_time: Optional[datetime]
    clock_out_time: Optional[datetime]
    breaks: tuple[CorrectionBreakItem, ...] = ()

    def to_dict(self) -> dict:
        return {
            "clock_in_time": format_local_datetime(self.clock_in_time),
            "clock_out_time": format_local_datetime(self.clock_out_time),
            "breaks": [b.to_dict() for b in self.breaks],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AttendanceCorrectionSnapshot":
        if not isinstance(data, dict):
            raise ValidationError("Snapshot must be an object")
        raw_breaks = data.get("breaks") or []
        if not isinstance(raw_breaks, list):
            raise ValidationError("breaks must be a list")
        return cls(
            clock_in_time=parse_local_datetime(data.get("clock_in_time")),
            clock_out_time=parse_local_datetime(data.get("clock_out_time")),
            breaks=tuple(CorrectionBreakItem.from_dict(b) for b in raw_breaks),
        )


def parse_stored_snapshot(document: Any, column: str) -> AttendanceCorrectionSnapshot:
    try:
        return AttendanceCorrectionSnapshot.from_dict(document)
    except ValidationError as exc:
        raise StorageError(f"Stored {column} is not a valid snapshot: {exc}") from exc


@dataclass(frozen=True)
class CorrectionChanges:
    """Fields an employee proposes; None means "keep the original value"."""

    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    breaks: Optional[tuple[CorrectionBreakItem, ...]] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CorrectionChanges":
        raw_breaks = payload.get("breaks")
        if raw_breaks is not None and not isinstance(raw_breaks, list):
            raise ValidationError("breaks must be a list")
        return cls(
            clock_in_time=parse_local_datetime(payload.get("clock_in_time")),
            clock_out_time=parse_local_datetime(payload.get("clock_out_time")),
            breaks=tuple(CorrectionBreakItem.from_dict(b) for b in raw_breaks) if raw_breaks is not None else None,
        )


@dataclass(frozen=True)
class AttendanceCorrectionRequest:
    request_id: int
    user_id: int
    attendance_id: int
    work_date: date
    status: CorrectionStatus
    reason: str
    original_snapshot_json: Any
    proposed_values_json: Any
    created_at: datetime
    updated_at: datetime
    decision_comment: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def parse_original_snapshot(self) -> AttendanceCorrectionSnapshot:
        return parse_stored_snapshot(self.original_snapshot_json, "original_snapshot")

    def parse_proposed_values(self) -> AttendanceCorrectionSnapshot:
        return parse_stored_snapshot(self.proposed_values_json, "proposed_values")

    def to_response(self) -> dict:
        return {
            "id": self.request_id,
            "user_id": self.user_id,
            "attendance_id": self.attendance_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "reason": self.reason,
            "original_snapshot": self.parse_original_snapshot().to_dict(),
            "proposed_values": self.parse_proposed_values().to_dict(),
            "decision_comment": self.decision_comment,
            "approved_by": self.approved_by,
            "approved_at": format_local_datetime(self.approved_at),
            "rejected_by": self.rejected_by,
            "rejected_at": format_local_datetime(self.rejected_at),
            "cancelled_at": format_local_datetime(self.cancelled_at),
            "created_at": format_local_datetime(self.created_at),
            "updated_at": format_local_datetime(self.updated_at),
        }


@dataclass(frozen=True)
class AttendanceCorrectionEffectiveValue:
    """Write-once record of what an approval wrote back."""

    effective_value_id: int
    attendance_id: int
    source_request_id: int
    clock_in_time_corrected: Optional[datetime]
    clock_out_time_corrected: Optional[datetime]
    breaks_corrected: tuple[CorrectionBreakItem, ...]
    applied_by: int
    applied_at: datetime

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "source_request_id": self.source_request_id,
            "clock_in_time_corrected": format_local_datetime(self.clock_in_time_corrected),
            "clock_out_time_corrected": format_local_datetime(self.clock_out_time_corrected),
            "break_records_corrected": [b.to_dict() for b in self.breaks_corrected],
            "applied_by": self.applied_by,
            "applied_at": format_local_datetime(self.applied_at),
        }
