from __future__ import annotations

import json
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import CorrectionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import MySQLTransaction, db_cursor, fetchall, fetchone, load_json_column
from .model import (
    AttendanceCorrectionEffectiveValue,
    AttendanceCorrectionRequest,
    AttendanceCorrectionSnapshot,
    CorrectionBreakItem,
    parse_stored_snapshot,
)
from .repository import CorrectionRequestRepository

_COLUMNS = """
    id, user_id, attendance_id, date, status, reason,
    original_snapshot_json, proposed_values_json, decision_comment,
    approved_by, approved_at, rejected_by, rejected_at, cancelled_at,
    created_at, updated_at
"""

_PENDING = CorrectionStatus.PENDING.to_db()


def _to_request(r: dict) -> AttendanceCorrectionRequest:
    return AttendanceCorrectionRequest(
        request_id=int(r["id"]),
        user_id=int(r["user_id"]),
        attendance_id=int(r["attendance_id"]),
        work_date=r["date"],
        status=CorrectionStatus.from_db(r["status"]),
        reason=r["reason"],
        original_snapshot_json=load_json_column(r["original_snapshot_json"]),
        proposed_values_json=load_json_column(r["proposed_values_json"]),
        decision_comment=r.get("decision_comment"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        rejected_by=r.get("rejected_by"),
        rejected_at=r.get("rejected_at"),
        cancelled_at=r.get("cancelled_at"),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def _to_effective_value(r: dict) -> AttendanceCorrectionEffectiveValue:
    breaks_doc = load_json_column(r["break_records_corrected_json"]) or []
    snapshot = parse_stored_snapshot({"breaks": breaks_doc}, "break_records_corrected_json")
    return AttendanceCorrectionEffectiveValue(
        effective_value_id=int(r["id"]),
        attendance_id=int(r["attendance_id"]),
        source_request_id=int(r["source_request_id"]),
        clock_in_time_corrected=r.get("clock_in_time_corrected"),
        clock_out_time_corrected=r.get("clock_out_time_corrected"),
        breaks_corrected=snapshot.breaks,
        applied_by=int(r["applied_by"]),
        applied_at=r["applied_at"],
    )


def _dump(snapshot: AttendanceCorrectionSnapshot) -> str:
    return json.dumps(snapshot.to_dict())


def _dump_breaks(breaks: Sequence[CorrectionBreakItem]) -> str:
    return json.dumps([b.to_dict() for b in breaks])


class MySQLCorrectionRequestRepository(CorrectionRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_correction_requests(
                    user_id, attendance_id, date, status, reason,
                    original_snapshot_json, proposed_values_json, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(attendance_id),
                    work_date,
                    _PENDING,
                    reason,
                    _dump(original_snapshot),
                    _dump(proposed_values),
                    now,
                    now,
                ),
            )
            return int(cur.lastrowid)

    def find_by_id(self, request_id: int) -> Optional[AttendanceCorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_correction_requests WHERE id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_by_user(self, user_id: int) -> Sequence[AttendanceCorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_correction_requests
                WHERE user_id=%s
                ORDER BY created_at DESC, id DESC
                """,
                (int(user_id),),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_paginated(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Sequence[AttendanceCorrectionRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.to_db())
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)
        offset = max(0, int(page) - 1) * int(per_page)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_correction_requests
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(per_page), offset]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def update_pending(
        self,
        *,
        request_id: int,
        user_id: int,
        reason: str,
        proposed_values: AttendanceCorrectionSnapshot,
        now: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_correction_requests
                SET reason=%s, proposed_values_json=%s, updated_at=%s
                WHERE id=%s AND user_id=%s AND status=%s
                """,
                (reason, _dump(proposed_values), now, int(request_id), int(user_id), _PENDING),
            )
            return cur.rowcount > 0

    def cancel_pending(self, *, request_id: int, user_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_correction_requests
                SET status=%s, cancelled_at=%s, updated_at=%s
                WHERE id=%s AND user_id=%s AND status=%s
                """,
                (CorrectionStatus.CANCELLED.to_db(), now, now, int(request_id), int(user_id), _PENDING),
            )
            return cur.rowcount > 0

    def reject_pending(self, *, request_id: int, approver_id: int, comment: str, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_correction_requests
                SET status=%s, rejected_by=%s, rejected_at=%s, decision_comment=%s, updated_at=%s
                WHERE id=%s AND status=%s
                """,
                (
                    CorrectionStatus.REJECTED.to_db(),
                    int(approver_id),
                    now,
                    comment,
                    now,
                    int(request_id),
                    _PENDING,
                ),
            )
            return cur.rowcount > 0

    def find_by_id_in_transaction(self, tx: MySQLTransaction, request_id: int) -> Optional[AttendanceCorrectionRequest]:
        tx.execute(
            f"SELECT {_COLUMNS} FROM attendance_correction_requests WHERE id=%s FOR UPDATE",
            (int(request_id),),
        )
        r = tx.fetchone()
        return _to_request(r) if r else None

    def approve_in_transaction(
        self,
        tx: MySQLTransaction,
        *,
        request_id: int,
        approver_id: int,
        comment: str,
        now: datetime,
    ) -> bool:
        tx.execute(
            """
            UPDATE attendance_correction_requests
            SET status=%s, approved_by=%s, approved_at=%s, decision_comment=%s, updated_at=%s
            WHERE id=%s AND status=%s
            """,
            (
                CorrectionStatus.APPROVED.to_db(),
                int(approver_id),
                now,
                comment,
                now,
                int(request_id),
                _PENDING,
            ),
        )
        return tx.rowcount > 0

    def mark_conflict_in_transaction(self, tx: MySQLTransaction, *, request_id: int, comment: str, now: datetime) -> bool:
        tx.execute(
            """
            UPDATE attendance_correction_requests
            SET status=%s, decision_comment=%s, updated_at=%s
            WHERE id=%s AND status=%s
            """,
            (CorrectionStatus.CONFLICT.to_db(), comment, now, int(request_id), _PENDING),
        )
        return tx.rowcount > 0

    def insert_effective_value_in_transaction(
        self,
        tx: MySQLTransaction,
        *,
        attendance_id: int,
        source_request_id: int,
        snapshot: AttendanceCorrectionSnapshot,
        applied_by: int,
        applied_at: datetime,
    ) -> int:
        tx.execute(
            """
            INSERT INTO attendance_correction_effective_values(
                attendance_id, source_request_id,
                clock_in_time_corrected, clock_out_time_corrected,
                break_records_corrected_json, applied_by, applied_at
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(attendance_id),
                int(source_request_id),
                snapshot.clock_in_time,
                snapshot.clock_out_time,
                _dump_breaks(snapshot.breaks),
                int(applied_by),
                applied_at,
            ),
        )
        return tx.lastrowid

    def list_effective_values(self, attendance_ids: Sequence[int]) -> Sequence[AttendanceCorrectionEffectiveValue]:
        ids = [int(i) for i in attendance_ids]
        if not ids:
            return []

        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, attendance_id, source_request_id,
                       clock_in_time_corrected, clock_out_time_corrected,
                       break_records_corrected_json, applied_by, applied_at
                FROM attendance_correction_effective_values
                WHERE attendance_id IN ({placeholders})
                ORDER BY attendance_id, applied_at, id
                """,
                tuple(ids),
            )
            return [_to_effective_value(r) for r in fetchall(cur)]
