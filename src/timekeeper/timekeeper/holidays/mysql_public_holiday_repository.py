from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import PublicHoliday
from .repository import PublicHolidayRepository

_SELECT = "SELECT id, holiday_date, name, description FROM holidays"


def _to_holiday(r: dict) -> PublicHoliday:
    return PublicHoliday(
        holiday_id=int(r["id"]),
        holiday_date=r["holiday_date"],
        name=r["name"],
        description=r.get("description"),
    )


class MySQLPublicHolidayRepository(PublicHolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_public_holiday(self, holiday_date: date) -> Optional[PublicHoliday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE holiday_date=%s LIMIT 1", (holiday_date,))
            r = fetchone(cur)
            return _to_holiday(r) if r else None

    def list_between(self, start: date, end: date) -> Sequence[PublicHoliday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE holiday_date BETWEEN %s AND %s ORDER BY holiday_date",
                (start, end),
            )
            return [_to_holiday(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[PublicHoliday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY holiday_date")
            return [_to_holiday(r) for r in fetchall(cur)]

    def create(self, *, holiday_date: date, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    "INSERT INTO holidays(holiday_date, name, description) VALUES(%s,%s,%s)",
                    (holiday_date, name, description),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError(f"A public holiday already exists on {holiday_date}") from exc
                raise
            return int(cur.lastrowid)

    def delete(self, holiday_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM holidays WHERE id=%s", (int(holiday_id),))
            return cur.rowcount > 0
