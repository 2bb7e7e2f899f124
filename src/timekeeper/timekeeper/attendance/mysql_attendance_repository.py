from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import MySQLTransaction, db_cursor, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = (
    "SELECT id, user_id, date, clock_in_time, clock_out_time, status, total_work_hours "
    "FROM attendance"
)


def _to_record(r: dict) -> AttendanceRecord:
    hours = r.get("total_work_hours")
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        user_id=int(r["user_id"]),
        work_date=r["date"],
        clock_in_time=r.get("clock_in_time"),
        clock_out_time=r.get("clock_out_time"),
        status=AttendanceStatus.from_db(r["status"]),
        total_work_hours=float(hours) if hours is not None else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_id=%s AND date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in_time: Optional[datetime],
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(user_id, date, clock_in_time, status)
                VALUES(%s,%s,%s,%s)
                """,
                (int(user_id), work_date, clock_in_time, status.to_db()),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        attendance_id: int,
        clock_in_time: Optional[datetime],
        clock_out_time: Optional[datetime],
        total_work_hours: Optional[float],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_in_time=%s, clock_out_time=%s, total_work_hours=%s
                WHERE id=%s
                """,
                (clock_in_time, clock_out_time, total_work_hours, int(attendance_id)),
            )
            return cur.rowcount > 0

    def find_by_id_in_transaction(self, tx: MySQLTransaction, attendance_id: int) -> Optional[AttendanceRecord]:
        tx.execute(f"{_SELECT} WHERE id=%s FOR UPDATE", (int(attendance_id),))
        r = tx.fetchone()
        return _to_record(r) if r else None

    def update_in_transaction(
        self,
        tx: MySQLTransaction,
        *,
        attendance_id: int,
        clock_in_time: Optional[datetime],
        clock_out_time: Optional[datetime],
        total_work_hours: Optional[float],
    ) -> None:
        tx.execute(
            """
            UPDATE attendance
            SET clock_in_time=%s, clock_out_time=%s, total_work_hours=%s
            WHERE id=%s
            """,
            (clock_in_time, clock_out_time, total_work_hours, int(attendance_id)),
        )
