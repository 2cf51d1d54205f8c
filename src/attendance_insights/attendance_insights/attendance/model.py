from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one member's status on one date."""

    member_id: int
    work_date: date
    status: AttendanceStatus
    attendance_id: Optional[int] = None
    marked_by: Optional[int] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "member_id": self.member_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "marked_by": self.marked_by,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AttendanceMark:
    """One entry of a bulk marking request."""

    member_id: int
    status: AttendanceStatus
    notes: Optional[str] = None


@dataclass(frozen=True)
class OverrideEntry:
    attendance_id: int
    admin_id: int
    previous_status: AttendanceStatus
    reason: str
    timestamp: datetime


@dataclass(frozen=True)
class AttendancePage:
    records: list[AttendanceRecord]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass(frozen=True)
class AttendanceExportRow:
    """Read-model for CSV export (joined with member and marker names)."""

    work_date: date
    member_name: str
    member_email: str
    day_group: str
    status: AttendanceStatus
    marked_by_name: Optional[str]
    marked_at: Optional[datetime]
    notes: Optional[str] = None
