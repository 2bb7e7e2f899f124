from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import MySQLTransaction, db_cursor, fetchall, fetchone
from .model import BreakRecord
from .repository import BreakRecordRepository

_SELECT = "SELECT id, attendance_id, break_start_time, break_end_time, duration_minutes FROM break_records"


def _to_break(r: dict) -> BreakRecord:
    duration = r.get("duration_minutes")
    return BreakRecord(
        break_id=int(r["id"]),
        attendance_id=int(r["attendance_id"]),
        break_start_time=r["break_start_time"],
        break_end_time=r.get("break_end_time"),
        duration_minutes=int(duration) if duration is not None else None,
    )


class MySQLBreakRecordRepository(BreakRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_attendance(self, attendance_id: int) -> Sequence[BreakRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE attendance_id=%s ORDER BY break_start_time ASC, id ASC",
                (int(attendance_id),),
            )
            return [_to_break(r) for r in fetchall(cur)]

    def find_active(self, attendance_id: int) -> Optional[BreakRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE attendance_id=%s AND break_end_time IS NULL ORDER BY break_start_time DESC LIMIT 1",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_break(r) if r else None

    def create(self, *, attendance_id: int, break_start_time: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO break_records(attendance_id, break_start_time) VALUES(%s,%s)",
                (int(attendance_id), break_start_time),
            )
            return int(cur.lastrowid)

    def update(self, *, break_id: int, break_end_time: datetime, duration_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE break_records SET break_end_time=%s, duration_minutes=%s WHERE id=%s",
                (break_end_time, int(duration_minutes), int(break_id)),
            )
            return cur.rowcount > 0

    def delete_by_attendance(self, attendance_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM break_records WHERE attendance_id=%s", (int(attendance_id),))
            return int(cur.rowcount)

    def find_by_attendance_in_transaction(self, tx: MySQLTransaction, attendance_id: int) -> Sequence[BreakRecord]:
        tx.execute(
            f"{_SELECT} WHERE attendance_id=%s ORDER BY break_start_time ASC, id ASC FOR UPDATE",
            (int(attendance_id),),
        )
        return [_to_break(r) for r in tx.fetchall()]

    def create_in_transaction(
        self,
        tx: MySQLTransaction,
        *,
        attendance_id: int,
        break_start_time: datetime,
        break_end_time: Optional[datetime],
        duration_minutes: Optional[int],
    ) -> int:
        tx.execute(
            """
            INSERT INTO break_records(attendance_id, break_start_time, break_end_time, duration_minutes)
            VALUES(%s,%s,%s,%s)
            """,
            (int(attendance_id), break_start_time, break_end_time, duration_minutes),
        )
        return tx.lastrowid

    def delete_in_transaction(self, tx: MySQLTransaction, attendance_id: int) -> int:
        tx.execute("DELETE FROM break_records WHERE attendance_id=%s", (int(attendance_id),))
        return tx.rowcount
