"""Schema and demo-data bootstrap for a local MySQL database."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..core.enums import DayGroup, Role
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# (name, email, password, role, day group)
DEMO_USERS = (
    ("Admin Demo", "admin@example.com", "admin1234", Role.ADMIN, DayGroup.ADMIN_DAY),
    ("Monday Leader", "leader.monday@example.com", "leader1234", Role.LEADER, DayGroup.MONDAY),
    ("Ada Member", "ada@example.com", "member1234", Role.MEMBER, DayGroup.MONDAY),
    ("Ben Member", "ben@example.com", "member1234", Role.MEMBER, DayGroup.MONDAY),
)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql works regardless of the configured database name
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside of quoted strings. Comment lines are dropped."""
    buf: list[str] = []
    quote = ""
    escape = False

    for line in sql.splitlines(keepends=True):
        if not quote and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif quote:
                if ch == quote:
                    quote = ""
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ";":
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                continue
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    name = conn_factory.config.database
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    ensure_database_exists(conn_factory)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", conn_factory.config.describe())


def ensure_demo_users(db_config: dict) -> None:
    """Insert the demo accounts, resetting their passwords if they already exist."""
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        for name, email, password, role, day_group in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (name, email, password_hash, role, day_group, status)
                VALUES (%s, %s, %s, %s, %s, 'active')
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), password_hash=VALUES(password_hash),
                    role=VALUES(role), day_group=VALUES(day_group), status='active'
                """,
                (name, email, generate_password_hash(password), role.value, day_group.value),
            )
        conn.commit()
    finally:
        conn.close()
    logger.info("Demo users ready (%s accounts)", len(DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
