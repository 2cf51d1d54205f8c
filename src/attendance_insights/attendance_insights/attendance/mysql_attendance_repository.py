from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import AttendanceStatus, DayGroup
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import AttendanceExportRow, AttendanceMark, AttendancePage, AttendanceRecord, OverrideEntry
from .repository import AttendanceRepository

_RECORD_COLUMNS = "a.attendance_id, a.member_id, a.work_date, a.status, a.marked_by, a.notes"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        member_id=int(r["member_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=r.get("marked_by"),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records a WHERE a.attendance_id=%s",
                (attendance_id,),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def upsert_marks(self, *, work_date: date, marks: Sequence[AttendanceMark], marked_by: Optional[int]) -> int:
        if not marks:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(member_id, work_date, status, marked_by, notes)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), marked_by=VALUES(marked_by), notes=VALUES(notes)
                """,
                [(m.member_id, work_date, m.status.value, marked_by, m.notes) for m in marks],
            )
            return len(marks)

    def insert_system_absences(self, *, work_date: date, member_ids: Sequence[int]) -> int:
        if not member_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            # no-op on duplicates: an existing mark always wins
            cur.executemany(
                """
                INSERT INTO attendance_records(member_id, work_date, status, marked_by, notes)
                VALUES(%s,%s,%s,NULL,NULL)
                ON DUPLICATE KEY UPDATE attendance_id=attendance_id
                """,
                [(int(m), work_date, AttendanceStatus.SYSTEM_ABSENT.value) for m in member_ids],
            )
            return max(cur.rowcount, 0)

    def list_records(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        day_group: Optional[DayGroup] = None,
        page: int = 1,
        limit: int = 10,
    ) -> AttendancePage:
        where: list[str] = []
        params: list[Any] = []
        if start_date:
            where.append("a.work_date>=%s")
            params.append(start_date)
        if end_date:
            where.append("a.work_date<=%s")
            params.append(end_date)
        if status:
            where.append("a.status=%s")
            params.append(status.value)
        if day_group:
            where.append("u.day_group=%s")
            params.append(day_group.value)
        clause = (" WHERE " + " AND ".join(where)) if where else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM attendance_records a JOIN users u ON u.user_id = a.member_id
                {clause}
                """,
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total", 0))
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records a JOIN users u ON u.user_id = a.member_id
                {clause}
                ORDER BY a.work_date DESC, a.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [limit, (page - 1) * limit]),
            )
            records = [_row_to_record(r) for r in fetchall(cur)]
        return AttendancePage(records=records, total=total, page=page, limit=limit)

    def override_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        admin_id: int,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status FROM attendance_records WHERE attendance_id=%s FOR UPDATE",
                (attendance_id,),
            )
            row = fetchone(cur)
            if not row:
                return False
            cur.execute(
                """
                INSERT INTO attendance_overrides(attendance_id, admin_id, previous_status, reason)
                VALUES(%s,%s,%s,%s)
                """,
                (attendance_id, admin_id, row["status"], reason),
            )
            cur.execute(
                "UPDATE attendance_records SET status=%s WHERE attendance_id=%s",
                (status.value, attendance_id),
            )
            return True

    def list_overrides(self, attendance_id: int) -> Sequence[OverrideEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, admin_id, previous_status, reason, created_at
                FROM attendance_overrides
                WHERE attendance_id=%s
                ORDER BY created_at, override_id
                """,
                (attendance_id,),
            )
            return [
                OverrideEntry(
                    attendance_id=int(r["attendance_id"]),
                    admin_id=int(r["admin_id"]),
                    previous_status=AttendanceStatus(r["previous_status"]),
                    reason=r["reason"],
                    timestamp=r["created_at"],
                )
                for r in fetchall(cur)
            ]

    def fetch_for_members(self, member_ids: Sequence[int], start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        ids = [int(i) for i in member_ids]
        if not ids:
            return []
        placeholders = in_placeholders(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records a
                WHERE a.member_id IN ({placeholders}) AND a.work_date BETWEEN %s AND %s
                ORDER BY a.work_date, a.member_id
                """,
                tuple(ids + [start_date, end_date]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_export_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        day_group: Optional[DayGroup] = None,
    ) -> Sequence[AttendanceExportRow]:
        params: list[Any] = [start_date, end_date]
        group_clause = ""
        if day_group:
            group_clause = " AND u.day_group=%s"
            params.append(day_group.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.work_date, u.name AS member_name, u.email AS member_email, u.day_group,
                       a.status, m.name AS marked_by_name, a.created_at AS marked_at, a.notes
                FROM attendance_records a
                JOIN users u ON u.user_id = a.member_id
                LEFT JOIN users m ON m.user_id = a.marked_by
                WHERE a.work_date BETWEEN %s AND %s{group_clause}
                ORDER BY a.work_date, u.name
                """,
                tuple(params),
            )
            return [
                AttendanceExportRow(
                    work_date=r["work_date"],
                    member_name=r["member_name"],
                    member_email=r["member_email"],
                    day_group=r["day_group"],
                    status=AttendanceStatus(r["status"]),
                    marked_by_name=r.get("marked_by_name"),
                    marked_at=r.get("marked_at"),
                    notes=r.get("notes"),
                )
                for r in fetchall(cur)
            ]
