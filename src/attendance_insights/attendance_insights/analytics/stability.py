from __future__ import annotations

from typing import Sequence

import numpy as np

from ..attendance.model import AttendanceRecord
from ..core.constants import (
    DAY_PATTERN_MIN_SAMPLES,
    FREQUENTLY_ABSENT_RATE,
    FREQUENTLY_PRESENT_RATE,
    REGULARITY_MAX_STD_DAYS,
    REGULARITY_MIN_INTERVALS,
    STABILITY_TREND_WINDOW,
    STREAK_MIN_LENGTH,
)
from ..core.enums import AttendanceStatus, DayPattern, StreakType, Trend
from ..users.model import User
from .grouping import group_by_day_of_week, group_by_member, sort_by_date
from .model import MemberPattern, StabilityMetric, Streak


def count_transitions(records: Sequence[AttendanceRecord]) -> int:
    """Adjacent status changes; expects date-ascending input."""
    return sum(1 for prev, cur in zip(records, records[1:]) if prev.status != cur.status)


def member_stability(records: Sequence[AttendanceRecord]) -> StabilityMetric:
    if not records:
        return StabilityMetric(stability_score=0.0, attendance_rate=0.0, variability_index=0.0, trend=Trend.INSUFFICIENT_DATA)

    ordered = sort_by_date(records)
    n = len(ordered)
    changes = count_transitions(ordered)
    present = sum(1 for r in ordered if r.status == AttendanceStatus.PRESENT)

    recent_present = sum(1 for r in ordered[-STABILITY_TREND_WINDOW:] if r.status == AttendanceStatus.PRESENT)
    if recent_present >= 3:
        trend = Trend.IMPROVING
    elif recent_present <= 1:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    return StabilityMetric(
        stability_score=100 * (1 - changes / n),
        attendance_rate=present / n * 100,
        variability_index=changes / n,
        trend=trend,
    )


def _streak_type(status: AttendanceStatus) -> StreakType:
    return StreakType.ABSENT if status.is_absence else StreakType.PRESENT


def status_runs(records: Sequence[AttendanceRecord]) -> list[Streak]:
    """Every maximal run of present / not-present records, in date order."""
    runs: list[Streak] = []
    current: Streak | None = None

    for r in sort_by_date(records):
        kind = _streak_type(r.status)
        if current is not None and current.type == kind:
            current = Streak(type=kind, start=current.start, length=current.length + 1)
            continue
        if current is not None:
            runs.append(current)
        current = Streak(type=kind, start=r.work_date, length=1)

    if current is not None:
        runs.append(current)
    return runs


def identify_streaks(records: Sequence[AttendanceRecord]) -> list[Streak]:
    return [run for run in status_runs(records) if run.length >= STREAK_MIN_LENGTH]


def day_patterns(records: Sequence[AttendanceRecord]) -> dict[str, DayPattern]:
    patterns: dict[str, DayPattern] = {}
    for day, counts in group_by_day_of_week(records, workdays_only=False).items():
        if counts.total < DAY_PATTERN_MIN_SAMPLES:
            continue
        rate = counts.present / counts.total * 100
        if rate >= FREQUENTLY_PRESENT_RATE:
            patterns[day] = DayPattern.FREQUENTLY_PRESENT
        elif rate <= FREQUENTLY_ABSENT_RATE:
            patterns[day] = DayPattern.FREQUENTLY_ABSENT
    return patterns


def regularity_score(records: Sequence[AttendanceRecord]) -> float:
    """100 for perfectly even spacing between present dates, falling to 0 at a 7-day std-dev."""
    present_dates = [r.work_date for r in sort_by_date(records) if r.status == AttendanceStatus.PRESENT]
    intervals = [(b - a).days for a, b in zip(present_dates, present_dates[1:])]
    if len(intervals) < REGULARITY_MIN_INTERVALS:
        return 0.0

    std = float(np.std(np.asarray(intervals, dtype=float)))
    return 100 * (1 - min(std / REGULARITY_MAX_STD_DAYS, 1.0))


def stability_metrics(records: Sequence[AttendanceRecord], members: Sequence[User]) -> list[dict]:
    by_member = group_by_member(records)
    return [
        {"member_id": m.user_id, "name": m.name, **member_stability(by_member.get(m.user_id, [])).to_dict()}
        for m in members
    ]


def member_patterns(records: Sequence[AttendanceRecord], members: Sequence[User]) -> list[MemberPattern]:
    by_member = group_by_member(records)
    out: list[MemberPattern] = []

    for m in members:
        member_records = by_member.get(m.user_id)
        if not member_records:
            continue

        days = day_patterns(member_records)
        streaks = identify_streaks(member_records)
        if days or streaks:
            out.append(
                MemberPattern(
                    member_id=m.user_id,
                    name=m.name,
                    day_patterns=days,
                    streaks=streaks,
                    regularity_score=regularity_score(member_records),
                )
            )
    return out
