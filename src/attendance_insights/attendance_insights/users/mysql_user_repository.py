from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import DayGroup, Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User, UserFilter
from .repository import UserRepository

_USER_COLUMNS = "user_id, name, email, password_hash, role, day_group, phone_number, department, status"


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        day_group=DayGroup(row["day_group"]),
        phone_number=row.get("phone_number") or "",
        department=row.get("department") or "",
        status=UserStatus(row.get("status") or UserStatus.ACTIVE.value),
    )


def _filter_clause(user_filter: UserFilter) -> tuple[str, list[Any]]:
    where: list[str] = []
    params: list[Any] = []
    if user_filter.role:
        where.append("role=%s")
        params.append(user_filter.role.value)
    if user_filter.day_group:
        where.append("day_group=%s")
        params.append(user_filter.day_group.value)
    if user_filter.status:
        where.append("status=%s")
        params.append(user_filter.status.value)
    if user_filter.search:
        where.append("(name LIKE %s OR email LIKE %s)")
        like = f"%{user_filter.search}%"
        params.extend([like, like])
    return (" WHERE " + " AND ".join(where)) if where else "", params


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_users(self, user_filter: UserFilter, *, page: int, limit: int) -> tuple[Sequence[User], int]:
        clause, params = _filter_clause(user_filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users{clause}", tuple(params))
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users{clause} ORDER BY name LIMIT %s OFFSET %s",
                tuple(params + [limit, (page - 1) * limit]),
            )
            return [_row_to_user(r) for r in fetchall(cur)], total

    def list_members(
        self,
        *,
        day_group: Optional[DayGroup] = None,
        status: Optional[UserStatus] = UserStatus.ACTIVE,
    ) -> Sequence[User]:
        clause, params = _filter_clause(UserFilter(role=Role.MEMBER, day_group=day_group, status=status))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users{clause} ORDER BY name", tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        day_group: DayGroup,
        phone_number: str = "",
        department: str = "",
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, day_group, phone_number, department, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,'active')
                """,
                (name, email.lower(), password_hash, role.value, day_group.value, phone_number, department),
            )
            return int(cur.lastrowid)

    def update_user(
        self,
        user_id: int,
        *,
        name: str,
        phone_number: str,
        department: str,
        day_group: DayGroup,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET name=%s, phone_number=%s, department=%s, day_group=%s
                WHERE user_id=%s
                """,
                (name, phone_number, department, day_group.value, user_id),
            )
            return cur.rowcount > 0

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (status.value, user_id))
            return cur.rowcount > 0

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, user_id))
            return cur.rowcount > 0
