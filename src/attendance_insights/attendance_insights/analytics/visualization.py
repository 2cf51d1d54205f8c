from __future__ import annotations

from typing import Mapping, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import WORKDAY_NAMES, day_name, is_workday
from ..core.enums import AttendanceStatus
from ..users.model import User
from .grouping import group_by_week, sort_by_date


def heatmap(records: Sequence[AttendanceRecord], members: Sequence[User]) -> dict:
    """One cell per record (1 = present). Records of members outside ``members`` are skipped."""
    names = {m.user_id: m.name for m in members}
    cells = [
        {
            "member": names[r.member_id],
            "member_id": r.member_id,
            "date": r.work_date.isoformat(),
            "value": 1 if r.status == AttendanceStatus.PRESENT else 0,
        }
        for r in sort_by_date(records)
        if r.member_id in names
    ]
    return {
        "data": cells,
        "members": [m.name for m in members],
        "dates": sorted({c["date"] for c in cells}),
    }


def timeline(records: Sequence[AttendanceRecord]) -> list[dict]:
    days: dict[str, dict] = {}
    for r in sort_by_date(records):
        key = r.work_date.isoformat()
        day = days.setdefault(
            key,
            {"date": key, "day_of_week": day_name(r.work_date), "present": 0, "absent": 0, "total": 0},
        )
        day["total"] += 1
        if r.status == AttendanceStatus.PRESENT:
            day["present"] += 1
        else:
            day["absent"] += 1

    return [{**d, "present_rate": d["present"] / d["total"] * 100} for d in days.values()]


def radar(records: Sequence[AttendanceRecord]) -> dict:
    """Per-weekday attendance for one member plus streak / consistency metrics (weekends ignored)."""
    by_day = {day: {"total": 0, "present": 0, "rate": 0.0} for day in WORKDAY_NAMES}
    workday_records = [r for r in sort_by_date(records) if is_workday(r.work_date)]

    longest = current = changes = 0
    previous = None
    for r in workday_records:
        stats = by_day[day_name(r.work_date)]
        stats["total"] += 1
        if r.status == AttendanceStatus.PRESENT:
            stats["present"] += 1
            current += 1
            longest = max(longest, current)
        else:
            current = 0

        if previous is not None and previous != r.status:
            changes += 1
        previous = r.status

    for stats in by_day.values():
        stats["rate"] = stats["present"] / stats["total"] * 100 if stats["total"] else 0.0

    volatility = changes / (len(workday_records) - 1) * 100 if len(workday_records) > 1 else 0.0
    consistency = 100 - volatility

    return {
        "labels": list(WORKDAY_NAMES),
        "datasets": [
            {"label": "Attendance Rate", "data": [by_day[d]["rate"] for d in WORKDAY_NAMES]},
            {"label": "Consistency", "data": [consistency for _ in WORKDAY_NAMES]},
        ],
        "metrics": {
            "attendance_by_day": by_day,
            "consistency": consistency,
            "longest_streak": longest,
            "volatility": volatility,
        },
    }


def trend_data(records: Sequence[AttendanceRecord]) -> dict:
    ordered = sort_by_date(records)

    daily: dict[str, list[int]] = {}
    present = 0
    for r in ordered:
        counts = daily.setdefault(r.work_date.isoformat(), [0, 0])
        counts[1] += 1
        if r.status == AttendanceStatus.PRESENT:
            counts[0] += 1
            present += 1

    total = len(ordered)
    return {
        "daily": [{"date": d, "rate": p / t * 100} for d, (p, t) in daily.items()],
        "weekly": [{"week": w, "rate": c.present / c.total * 100} for w, c in group_by_week(ordered).items()],
        "overall": {
            "total": total,
            "present": present,
            "absent": total - present,
            "rate": present / total * 100 if total else 0.0,
        },
    }


def trend_comparison(records_by_group: Mapping[str, Sequence[AttendanceRecord]]) -> dict:
    return {group: trend_data(records) for group, records in records_by_group.items()}
