from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import WeeklyHolidayRule
from .repository import WeeklyHolidayRepository

_SELECT = (
    "SELECT id, weekday, starts_on, ends_on, enforced_from, enforced_to, created_by, created_at "
    "FROM weekly_holidays"
)


def _to_rule(r: dict) -> WeeklyHolidayRule:
    return WeeklyHolidayRule(
        rule_id=int(r["id"]),
        weekday=int(r["weekday"]),
        starts_on=r["starts_on"],
        ends_on=r.get("ends_on"),
        enforced_from=r["enforced_from"],
        enforced_to=r.get("enforced_to"),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
    )


class MySQLWeeklyHolidayRepository(WeeklyHolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_weekly_rules(self) -> Sequence[WeeklyHolidayRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY enforced_from, weekday")
            return [_to_rule(r) for r in fetchall(cur)]

    def list_for_range(self, start: date, end: date) -> Sequence[WeeklyHolidayRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE enforced_from <= %s AND (enforced_to IS NULL OR enforced_to >= %s)
                ORDER BY enforced_from, weekday
                """,
                (end, start),
            )
            return [_to_rule(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        weekday: int,
        starts_on: date,
        ends_on: Optional[date],
        enforced_from: date,
        enforced_to: Optional[date],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO weekly_holidays(
                    weekday, starts_on, ends_on, enforced_from, enforced_to, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(weekday), starts_on, ends_on, enforced_from, enforced_to, int(created_by)),
            )
            return int(cur.lastrowid)

    def delete(self, rule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM weekly_holidays WHERE id=%s", (int(rule_id),))
            return cur.rowcount > 0
