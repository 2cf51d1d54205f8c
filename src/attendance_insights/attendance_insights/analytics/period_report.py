from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import is_workday, iter_dates, working_days
from ..core.enums import DayGroup
from ..users.model import User
from .grouping import group_by_member
from .model import StatusCounts


def max_consecutive_absences(records: Sequence[AttendanceRecord], start: date, end: date) -> int:
    """Longest run of absent working days in the calendar range.

    Working days with no record break the run, the same as a present day.
    """
    status_by_date = {r.work_date: r.status for r in records}
    longest = current = 0
    for d in iter_dates(start, end):
        if not is_workday(d):
            continue
        status = status_by_date.get(d)
        if status is not None and status.is_absence:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def build_period_report(
    records: Sequence[AttendanceRecord],
    members: Sequence[User],
    *,
    start: date,
    end: date,
    day_group: Optional[DayGroup] = None,
) -> dict:
    total_working_days = working_days(start, end)
    by_member = group_by_member(r for r in records if start <= r.work_date <= end)

    member_stats: list[dict] = []
    for m in members:
        member_records = by_member.get(m.user_id, [])
        counts = StatusCounts()
        for r in member_records:
            counts.add(r.status)

        member_stats.append(
            {
                "member_id": m.user_id,
                "name": m.name,
                "email": m.email,
                "day_group": m.day_group.value,
                **counts.to_dict(),
                "attendance_rate": counts.present / total_working_days * 100 if total_working_days else 0.0,
                "max_consecutive_absences": max_consecutive_absences(member_records, start, end),
            }
        )

    return {
        "summary": {
            "period": {"start_date": start.isoformat(), "end_date": end.isoformat()},
            "total_working_days": total_working_days,
            "total_members": len(members),
            "day_group": day_group.value if day_group else "All",
        },
        "member_stats": member_stats,
    }
