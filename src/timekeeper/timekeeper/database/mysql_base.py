from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StorageError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one cursor, committed on success.

    ``mysql.connector.Error`` is re-raised as ``StorageError``.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise StorageError("Database unavailable") from exc
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise StorageError("Database error") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


class MySQLTransaction:
    """Open transaction handed to repository ``*_in_transaction`` methods."""

    def __init__(self, conn, cur):
        self.conn = conn
        self.cur = cur

    def execute(self, sql: str, params: tuple = ()) -> None:
        try:
            self.cur.execute(sql, params)
        except mysql.connector.Error as exc:
            raise StorageError("Database error") from exc

    @property
    def rowcount(self) -> int:
        return int(self.cur.rowcount)

    @property
    def lastrowid(self) -> int:
        return int(self.cur.lastrowid)

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return fetchone(self.cur)

    def fetchall(self) -> List[Dict[str, Any]]:
        return fetchall(self.cur)


class MySQLUnitOfWork:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self) -> Iterator[MySQLTransaction]:
        """Begin, yield, then commit once; roll back on any exception."""
        try:
            conn = self._conn_factory.connect()
        except mysql.connector.Error as exc:
            raise StorageError("Database unavailable") from exc
        try:
            conn.start_transaction()
            cur = conn.cursor(dictionary=True)
            try:
                yield MySQLTransaction(conn, cur)
                conn.commit()
            finally:
                cur.close()
        except mysql.connector.Error as exc:
            logger.warning("Rolling back transaction after database error: %s", exc)
            conn.rollback()
            raise StorageError("Transaction failed") from exc
        except Exception:
            logger.warning("Rolling back transaction")
            conn.rollback()
            raise
        finally:
            conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def load_json_column(value: Any) -> Any:
    """JSON columns come back as str, bytes or an already-decoded value."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as exc:
            raise StorageError("Stored JSON document is malformed") from exc
    return value


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY
