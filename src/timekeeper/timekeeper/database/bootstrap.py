"""Schema bootstrap for ``database/schema.sql``.

Used by ``create_app`` when ``AUTO_INIT_DB`` is on and by ``scripts/init_db.py``.
Every table in the schema is ``CREATE TABLE IF NOT EXISTS`` so applying it
twice is harmless.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from ..core.exceptions import StorageError
from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")
_QUOTED_OR_SEMICOLON = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|;")


def _clean(sql: str) -> str:
    # The target database comes from settings, not from the file.
    sql = _DATABASE_DIRECTIVES.sub("", sql)
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split on semicolons that are not inside a quoted literal."""
    start = 0
    for match in _QUOTED_OR_SEMICOLON.finditer(sql):
        if match.group() != ";":
            continue
        stmt = sql[start:match.start()].strip()
        if stmt:
            yield stmt
        start = match.end()
    tail = sql[start:].strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    factory = DatabaseConnection(DBConfig.from_settings(db_config))
    name = factory.config.database
    try:
        conn = factory.connect(with_database=False)
        try:
            conn.cursor().execute(
                f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            conn.commit()
        finally:
            conn.close()
    except mysql.connector.Error as exc:
        raise StorageError(f"Cannot create database {name!r}") from exc


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Create the database if needed and run every statement; returns the statement count."""
    ensure_database_exists(db_config)
    factory = DatabaseConnection(DBConfig.from_settings(db_config))
    statements = list(iter_sql_statements(_clean(Path(schema_path).read_text(encoding="utf-8"))))

    try:
        conn = factory.connect()
        try:
            cur = conn.cursor()
            for stmt in statements:
                cur.execute(stmt)
            conn.commit()
        finally:
            conn.close()
    except mysql.connector.Error as exc:
        raise StorageError(f"Applying {schema_path} failed") from exc

    logger.info("Applied %d schema statements to %s", len(statements), factory.config.database)
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    factory = DatabaseConnection(DBConfig.from_settings(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
