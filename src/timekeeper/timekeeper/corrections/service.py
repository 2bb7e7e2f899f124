from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository, BreakRecordRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_length_between
from ..core.actor import Actor
from ..core.constants import DEFAULT_PAGE, DEFAULT_PER_PAGE, MAX_COMMENT_LENGTH, MAX_PER_PAGE, MAX_REASON_LENGTH
from ..core.enums import CorrectionStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..database.unit_of_work import UnitOfWork
from .applier import CorrectionApplier
from .model import AttendanceCorrectionEffectiveValue, AttendanceCorrectionRequest, CorrectionChanges
from .repository import CorrectionRequestRepository
from .snapshot import SnapshotReader, build_proposed_snapshot, validate_snapshot

logger = logging.getLogger(__name__)

STALE_MESSAGE = "Attendance record changed after request submission. Please resubmit."


class CorrectionRequestService:
    """Workflow for attendance correction requests.

    PENDING is the only state that moves: to APPROVED or REJECTED by an
    admin, to CANCELLED by the owner, or to CONFLICT when the attendance
    changed between submission and approval.
    """

    def __init__(
        self,
        requests: CorrectionRequestRepository,
        attendance: AttendanceRepository,
        breaks: BreakRecordRepository,
        uow: UnitOfWork,
        applier: Optional[CorrectionApplier] = None,
    ):
        self._requests = requests
        self._attendance = attendance
        self._breaks = breaks
        self._uow = uow
        self._applier = applier or CorrectionApplier(attendance, breaks, requests)
        self._snapshots = SnapshotReader(attendance, breaks)

    # -------- Employee operations --------
    def create_request(
        self,
        *,
        actor: Actor,
        work_date: date,
        reason: str,
        changes: CorrectionChanges,
        now: Optional[datetime] = None,
    ) -> AttendanceCorrectionRequest:
        reason = require_length_between(reason, "reason", 1, MAX_REASON_LENGTH)

        attendance, original = self._snapshots.capture(actor.user_id, work_date)
        proposed = build_proposed_snapshot(original, changes)
        if proposed == original:
            raise ValidationError("At least one field must be changed")
        validate_snapshot(proposed)

        request_id = self._requests.create(
            user_id=actor.user_id,
            attendance_id=attendance.attendance_id,
            work_date=work_date,
            reason=reason,
            original_snapshot=original,
            proposed_values=proposed,
            now=now or now_local(),
        )
        logger.info("Correction request %s created by user %s for %s", request_id, actor.user_id, work_date)
        return self._get_or_fail(request_id)

    def update_request(
        self,
        *,
        actor: Actor,
        request_id: int,
        reason: str,
        changes: CorrectionChanges,
        now: Optional[datetime] = None,
    ) -> AttendanceCorrectionRequest:
        reason = require_length_between(reason, "reason", 1, MAX_REASON_LENGTH)

        current = self._get_owned(actor, request_id)
        if current.status != CorrectionStatus.PENDING:
            raise ConflictError("Only pending requests can be updated")

        # Diff against the snapshot captured at submission, not today's record.
        original = current.parse_original_snapshot()
        proposed = build_proposed_snapshot(original, changes)
        if proposed == original:
            raise ValidationError("At least one field must be changed")
        validate_snapshot(proposed)

        if not self._requests.update_pending(
            request_id=current.request_id,
            user_id=actor.user_id,
            reason=reason,
            proposed_values=proposed,
            now=now or now_local(),
        ):
            raise ConflictError("Only pending requests can be updated")
        logger.info("Correction request %s updated by user %s", request_id, actor.user_id)
        return self._get_or_fail(current.request_id)

    def cancel(self, *, actor: Actor, request_id: int, now: Optional[datetime] = None) -> AttendanceCorrectionRequest:
        current = self._get_owned(actor, request_id)
        if current.status != CorrectionStatus.PENDING:
            raise ConflictError("Only pending requests can be cancelled")

        if not self._requests.cancel_pending(request_id=current.request_id, user_id=actor.user_id, now=now or now_local()):
            raise ConflictError("Only pending requests can be cancelled")
        logger.info("Correction request %s cancelled by user %s", request_id, actor.user_id)
        return self._get_or_fail(current.request_id)

    def list_my_requests(self, *, actor: Actor) -> Sequence[AttendanceCorrectionRequest]:
        return self._requests.list_by_user(actor.user_id)

    def get_my_request(self, *, actor: Actor, request_id: int) -> AttendanceCorrectionRequest:
        return self._get_owned(actor, request_id)

    # -------- Admin operations --------
    def approve(
        self,
        *,
        actor: Actor,
        request_id: int,
        comment: str,
        now: Optional[datetime] = None,
    ) -> AttendanceCorrectionRequest:
        actor.require_admin()
        comment = require_length_between(comment, "comment", 1, MAX_COMMENT_LENGTH)
        now = now or now_local()

        stale = False
        with self._uow.transaction() as tx:
            request = self._requests.find_by_id_in_transaction(tx, int(request_id))
            if not request:
                raise NotFoundError("Attendance correction request not found")
            if request.status != CorrectionStatus.PENDING:
                raise ConflictError("Request not found or already processed")

            original = request.parse_original_snapshot()
            proposed = request.parse_proposed_values()

            attendance, latest = self._snapshots.capture_in_transaction(tx, request.attendance_id)
            if latest != original:
                stale = True
                self._requests.mark_conflict_in_transaction(
                    tx, request_id=request.request_id, comment=comment, now=now
                )
            else:
                self._applier.apply(
                    tx,
                    request_id=request.request_id,
                    attendance_id=attendance.attendance_id,
                    proposed=proposed,
                    approver_id=actor.user_id,
                    applied_at=now,
                )
                if not self._requests.approve_in_transaction(
                    tx, request_id=request.request_id, approver_id=actor.user_id, comment=comment, now=now
                ):
                    raise ConflictError("Request not found or already processed")

        if stale:
            logger.warning("Correction request %s marked conflict: attendance changed since submission", request_id)
            raise ConflictError(STALE_MESSAGE)

        logger.info("Correction request %s approved by user %s", request_id, actor.user_id)
        return self._get_or_fail(int(request_id))

    def reject(
        self,
        *,
        actor: Actor,
        request_id: int,
        comment: str,
        now: Optional[datetime] = None,
    ) -> AttendanceCorrectionRequest:
        actor.require_admin()
        comment = require_length_between(comment, "comment", 1, MAX_COMMENT_LENGTH)

        current = self._get_or_fail(int(request_id))
        if current.status != CorrectionStatus.PENDING:
            raise ConflictError("Request not found or already processed")
        if not self._requests.reject_pending(
            request_id=current.request_id, approver_id=actor.user_id, comment=comment, now=now or now_local()
        ):
            raise ConflictError("Request not found or already processed")
        logger.info("Correction request %s rejected by user %s", request_id, actor.user_id)
        return self._get_or_fail(current.request_id)

    def list_requests(
        self,
        *,
        actor: Actor,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        page: int = DEFAULT_PAGE,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> Sequence[AttendanceCorrectionRequest]:
        actor.require_admin()
        page = max(1, int(page))
        per_page = min(max(1, int(per_page)), MAX_PER_PAGE)
        return self._requests.list_paginated(status=status, user_id=user_id, page=page, per_page=per_page)

    def get_request(self, *, actor: Actor, request_id: int) -> AttendanceCorrectionRequest:
        actor.require_admin()
        return self._get_or_fail(int(request_id))

    def get_effective_values(self, *, actor: Actor, attendance_ids: Sequence[int]) -> Sequence[AttendanceCorrectionEffectiveValue]:
        actor.require_admin()
        return self._requests.list_effective_values(attendance_ids)

    # -------- helpers --------
    def _get_or_fail(self, request_id: int) -> AttendanceCorrectionRequest:
        request = self._requests.find_by_id(int(request_id))
        if not request:
            raise NotFoundError("Attendance correction request not found")
        return request

    def _get_owned(self, actor: Actor, request_id: int) -> AttendanceCorrectionRequest:
        request = self._get_or_fail(int(request_id))
        if request.user_id != actor.user_id:
            raise AuthorizationError("Forbidden")
        return request


def parse_status_filter(value: Optional[str]) -> Optional[CorrectionStatus]:
    if value is None or value == "":
        return None
    try:
        return CorrectionStatus(value)
    except ValueError:
        raise ValidationError(f"invalid status: {value!r}") from None
