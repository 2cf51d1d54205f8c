from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, DayGroup
from .model import AttendanceExportRow, AttendanceMark, AttendancePage, AttendanceRecord, OverrideEntry


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert_marks(self, *, work_date: date, marks: Sequence[AttendanceMark], marked_by: Optional[int]) -> int:
        """Insert or replace one record per (member, date). Returns the number of rows written."""

        raise NotImplementedError

    def insert_system_absences(self, *, work_date: date, member_ids: Sequence[int]) -> int:
        """Add a system-absent record for each member that has none on ``work_date``.

        Existing records are never touched. Returns the number of records created.
        """

        raise NotImplementedError

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
        """Newest first."""

        raise NotImplementedError

    def override_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        admin_id: int,
        reason: str,
    ) -> bool:
        """Change the status and append the previous one to the override history."""

        raise NotImplementedError

    def list_overrides(self, attendance_id: int) -> Sequence[OverrideEntry]:
        raise NotImplementedError

    def fetch_for_members(self, member_ids: Sequence[int], start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records of ``member_ids`` with ``start_date <= work_date <= end_date``, date ascending."""

        raise NotImplementedError

    def list_export_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        day_group: Optional[DayGroup] = None,
    ) -> Sequence[AttendanceExportRow]:
        raise NotImplementedError
