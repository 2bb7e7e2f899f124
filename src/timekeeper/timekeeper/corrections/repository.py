from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import CorrectionStatus
from .model import AttendanceCorrectionEffectiveValue, AttendanceCorrectionRequest, AttendanceCorrectionSnapshot


class CorrectionRequestRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        attendance_id: int,
        work_date: date,
        reason: str,
        original_snapshot: AttendanceCorrectionSnapshot,
        proposed_values: AttendanceCorrectionSnapshot,
        now: datetime,
    ) -> int:
        """Insert a PENDING request and return its id."""

        raise NotImplementedError

    def find_by_id(self, request_id: int) -> Optional[AttendanceCorrectionRequest]:
        raise NotImplementedError

    def list_by_user(self, user_id: int) -> Sequence[AttendanceCorrectionRequest]:
        """Newest first."""

        raise NotImplementedError

    def list_paginated(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Sequence[AttendanceCorrectionRequest]:
        raise NotImplementedError

    # Each ``*_pending`` update only matches a PENDING row and reports whether it did.
    def update_pending(
        self,
        *,
        request_id: int,
        user_id: int,
        reason: str,
        proposed_values: AttendanceCorrectionSnapshot,
        now: datetime,
    ) -> bool:
        raise NotImplementedError

    def cancel_pending(self, *, request_id: int, user_id: int, now: datetime) -> bool:
        raise NotImplementedError

    def reject_pending(self, *, request_id: int, approver_id: int, comment: str, now: datetime) -> bool:
        raise NotImplementedError

    def find_by_id_in_transaction(self, tx: Any, request_id: int) -> Optional[AttendanceCorrectionRequest]:
        raise NotImplementedError

    def approve_in_transaction(
        self,
        tx: Any,
        *,
        request_id: int,
        approver_id: int,
        comment: str,
        now: datetime,
    ) -> bool:
        raise NotImplementedError

    def mark_conflict_in_transaction(self, tx: Any, *, request_id: int, comment: str, now: datetime) -> bool:
        raise NotImplementedError

    def insert_effective_value_in_transaction(
        self,
        tx: Any,
        *,
        attendance_id: int,
        source_request_id: int,
        snapshot: AttendanceCorrectionSnapshot,
        applied_by: int,
        applied_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_effective_values(self, attendance_ids: Sequence[int]) -> Sequence[AttendanceCorrectionEffectiveValue]:
        raise NotImplementedError
