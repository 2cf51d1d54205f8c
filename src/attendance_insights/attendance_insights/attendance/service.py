from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

import pandas as pd

from ..caching.cache import AnalyticsCache, NullCache
from ..common.datetime_utils import is_workday, now_local
from ..common.logging_config import audit_logger
from ..common.validators import require_date_range, require_max_length, require_min_length
from ..core.constants import DEFAULT_MARKING_WINDOW_HOURS, MAX_NOTES_LENGTH, MIN_OVERRIDE_REASON_LENGTH
from ..core.enums import AttendanceStatus, DayGroup
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceMark, AttendancePage, AttendanceRecord, OverrideEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)
audit = audit_logger()

EXPORT_COLUMNS = ["Date", "Member Name", "Member Email", "Day Group", "Status", "Marked By", "Marked At", "Notes"]

# Statuses a person may set; system-absent is reserved for automatic processing.
MANUAL_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)


class AttendanceService:
    """Use cases around daily attendance records. Every write clears the analytics cache."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        cache: Optional[AnalyticsCache] = None,
        marking_window_hours: int = DEFAULT_MARKING_WINDOW_HOURS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._cache = cache if cache is not None else NullCache()
        self._window = timedelta(hours=int(marking_window_hours))
        self._clock = clock

    def can_mark(self, work_date: date, *, now: Optional[datetime] = None) -> bool:
        """Today is always open; earlier dates only while inside the marking window."""
        now = now or self._clock()
        if work_date > now.date():
            return False
        if work_date == now.date():
            return True
        return now - datetime.combine(work_date, datetime.min.time()) <= self._window

    def mark_attendance(
        self,
        *,
        leader_id: int,
        leader_day_group: DayGroup,
        work_date: date,
        marks: Sequence[AttendanceMark],
    ) -> int:
        if not marks:
            raise ValidationError("At least one member is required")
        if not is_workday(work_date):
            raise ValidationError("Attendance can only be marked on weekdays")
        if not self.can_mark(work_date):
            raise ValidationError("Attendance can only be marked within the allowed time window")

        allowed = {m.user_id for m in self._users.list_members(day_group=leader_day_group)}
        seen: set[int] = set()
        for mark in marks:
            if mark.status not in MANUAL_STATUSES:
                raise ValidationError(f"Invalid status: {mark.status.value}")
            require_max_length(mark.notes, "Notes", MAX_NOTES_LENGTH)
            if mark.member_id not in allowed:
                raise AuthorizationError(f"Member {mark.member_id} is not in your day group")
            if mark.member_id in seen:
                raise ValidationError(f"Member {mark.member_id} appears more than once")
            seen.add(mark.member_id)

        written = self._attendance.upsert_marks(work_date=work_date, marks=marks, marked_by=leader_id)
        audit.info("attendance marked date=%s members=%s by=%s", work_date.isoformat(), len(marks), leader_id)
        self._invalidate()
        return written

    def get_attendance(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        day_group: Optional[DayGroup] = None,
        page: int = 1,
        limit: int = 10,
    ) -> AttendancePage:
        if start_date and end_date:
            require_date_range(start_date, end_date)
        return self._attendance.list_records(
            start_date=start_date,
            end_date=end_date,
            status=status,
            day_group=day_group,
            page=page,
            limit=limit,
        )

    def override_attendance(
        self,
        attendance_id: int,
        *,
        admin_id: int,
        status: AttendanceStatus,
        reason: str,
    ) -> AttendanceRecord:
        if status not in MANUAL_STATUSES:
            raise ValidationError(f"Invalid status: {status.value}")
        reason = require_min_length((reason or "").strip(), "Reason", MIN_OVERRIDE_REASON_LENGTH)
        require_max_length(reason, "Reason", MAX_NOTES_LENGTH)

        current = self._attendance.get_by_id(attendance_id)
        if not current:
            raise NotFoundError("Attendance record not found")

        self._attendance.override_status(attendance_id=attendance_id, status=status, admin_id=admin_id, reason=reason)
        audit.info(
            "attendance override id=%s %s->%s by=%s reason=%s",
            attendance_id,
            current.status.value,
            status.value,
            admin_id,
            reason,
        )
        self._invalidate()

        updated = self._attendance.get_by_id(attendance_id)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated

    def override_history(self, attendance_id: int) -> Sequence[OverrideEntry]:
        if not self._attendance.get_by_id(attendance_id):
            raise NotFoundError("Attendance record not found")
        return self._attendance.list_overrides(attendance_id)

    def process_automatic_absence(self, work_date: Optional[date] = None) -> int:
        """Mark every active member without a record on ``work_date`` as system-absent."""
        work_date = work_date or self._clock().date()
        if not is_workday(work_date):
            raise ValidationError("Automatic absence only runs on weekdays")
        members = self._users.list_members()
        existing = self._attendance.fetch_for_members([m.user_id for m in members], work_date, work_date)
        marked = {r.member_id for r in existing}

        missing = [m.user_id for m in members if m.user_id not in marked]
        if not missing:
            return 0

        created = self._attendance.insert_system_absences(work_date=work_date, member_ids=missing)
        audit.info("automatic absence processed date=%s count=%s", work_date.isoformat(), created)
        if created:
            self._invalidate()
        return created

    def export_csv(self, *, start_date: date, end_date: date, day_group: Optional[DayGroup] = None) -> str:
        require_date_range(start_date, end_date)
        rows = self._attendance.list_export_rows(start_date=start_date, end_date=end_date, day_group=day_group)

        df = pd.DataFrame(
            [
                {
                    "Date": r.work_date.isoformat(),
                    "Member Name": r.member_name,
                    "Member Email": r.member_email,
                    "Day Group": r.day_group,
                    "Status": r.status.value,
                    "Marked By": r.marked_by_name or "System",
                    "Marked At": r.marked_at.isoformat() if r.marked_at else "",
                    "Notes": r.notes or "",
                }
                for r in rows
            ],
            columns=EXPORT_COLUMNS,
        )
        logger.info("Exported %s attendance rows (%s..%s)", len(df), start_date, end_date)
        return df.to_csv(index=False)

    def _invalidate(self) -> None:
        self._cache.clear()
