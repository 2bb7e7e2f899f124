from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import HolidayException
from .repository import HolidayExceptionRepository

_SELECT = (
    "SELECT id, user_id, exception_date, `override`, reason, created_by, created_at "
    "FROM holiday_exceptions"
)


def _to_exception(r: dict) -> HolidayException:
    return HolidayException(
        exception_id=int(r["id"]),
        user_id=int(r["user_id"]),
        exception_date=r["exception_date"],
        override=bool(r["override"]),
        reason=r.get("reason"),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
    )


class MySQLHolidayExceptionRepository(HolidayExceptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_exception(self, user_id: int, exception_date: date) -> Optional[HolidayException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE user_id=%s AND exception_date=%s",
                (int(user_id), exception_date),
            )
            r = fetchone(cur)
            return _to_exception(r) if r else None

    def list_for_user(
        self,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[HolidayException]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if start is not None:
            clauses.append("exception_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("exception_date <= %s")
            params.append(end)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY exception_date", tuple(params))
            return [_to_exception(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        exception_date: date,
        override: bool,
        reason: Optional[str],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO holiday_exceptions(user_id, exception_date, `override`, reason, created_by)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), exception_date, bool(override), reason, int(created_by)),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError(
                        f"Holiday exception already exists for user {user_id} on {exception_date}"
                    ) from exc
                raise
            return int(cur.lastrowid)

    def delete(self, exception_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM holiday_exceptions WHERE id=%s AND user_id=%s",
                (int(exception_id), int(user_id)),
            )
            return cur.rowcount > 0
