from __future__ import annotations

from typing import Iterable, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import WEEKDAY_NAMES, WORKDAY_NAMES, day_name, week_start
from .model import BucketTrend, Rates, StatusCounts


def sort_by_date(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    """Date-ascending copy. Ties keep their input order."""
    return sorted(records, key=lambda r: r.work_date)


def group_by_week(records: Iterable[AttendanceRecord]) -> dict[str, StatusCounts]:
    """Counts keyed by the ISO date of the Monday starting each week, ascending."""
    weeks: dict[str, StatusCounts] = {}
    for r in records:
        key = week_start(r.work_date).isoformat()
        weeks.setdefault(key, StatusCounts()).add(r.status)
    return {k: weeks[k] for k in sorted(weeks)}


def group_by_day_of_week(records: Iterable[AttendanceRecord], *, workdays_only: bool = True) -> dict[str, StatusCounts]:
    days: dict[str, StatusCounts] = {}
    for r in records:
        days.setdefault(day_name(r.work_date), StatusCounts()).add(r.status)

    names = WORKDAY_NAMES if workdays_only else WEEKDAY_NAMES
    return {name: days[name] for name in names if name in days}


def group_by_member(records: Iterable[AttendanceRecord]) -> dict[int, list[AttendanceRecord]]:
    members: dict[int, list[AttendanceRecord]] = {}
    for r in records:
        members.setdefault(r.member_id, []).append(r)
    return {member_id: sort_by_date(items) for member_id, items in members.items()}


def to_rates(counts: StatusCounts) -> Rates:
    total = counts.total
    if total == 0:
        return Rates()
    return Rates(
        present_rate=counts.present / total * 100,
        absent_rate=(counts.absent + counts.system_absent) / total * 100,
        system_absent_rate=counts.system_absent / total * 100,
    )


def present_ratio(records: Sequence[AttendanceRecord]) -> float:
    """Share of present records in [0, 1]; 0 for an empty slice."""
    if not records:
        return 0.0
    return sum(1 for r in records if not r.status.is_absence) / len(records)


def weekly_trends(records: Iterable[AttendanceRecord]) -> list[BucketTrend]:
    return [BucketTrend(key=week, rates=to_rates(c), total=c.total) for week, c in group_by_week(records).items()]


def day_of_week_trends(records: Iterable[AttendanceRecord]) -> list[BucketTrend]:
    return [BucketTrend(key=day, rates=to_rates(c), total=c.total) for day, c in group_by_day_of_week(records).items()]
