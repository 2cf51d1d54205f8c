from __future__ import annotations

from datetime import timedelta
from typing import Mapping, Sequence

import numpy as np

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import day_name, next_working_day
from ..core.constants import (
    CONFIDENCE_FULL_RECORDS,
    FORECAST_WINDOW_DAYS,
    MOMENTUM_WINDOW,
    PREDICTION_MIN_RECORDS,
    RISK_RECENT_WINDOW,
)
from ..core.enums import DayPattern, RiskLevel, StreakType, Trend
from ..users.model import User
from .grouping import group_by_day_of_week, group_by_member, group_by_week, present_ratio, sort_by_date
from .model import MemberPrediction, NextDayPrediction, RatePoint, RegressionResult
from .stability import day_patterns


def linear_regression(points: Sequence[RatePoint]) -> RegressionResult:
    """Least squares fit of rate against position ``0..n-1``.

    A flat series (zero total variance) is a perfect fit: confidence 100.
    """
    n = len(points)
    if n < 2:
        return RegressionResult(next_value=None, confidence=0.0, trend=Trend.INSUFFICIENT_DATA)

    x = np.arange(n, dtype=float)
    y = np.asarray([p.rate for p in points], dtype=float)
    x_dev = x - x.mean()
    y_dev = y - y.mean()

    slope = float((x_dev * y_dev).sum() / (x_dev ** 2).sum())
    intercept = float(y.mean() - slope * x.mean())

    ss_res = float(((y - (slope * x + intercept)) ** 2).sum())
    ss_total = float((y_dev ** 2).sum())
    r_squared = 1.0 if ss_total == 0 else 1 - ss_res / ss_total

    if slope > 0:
        trend = Trend.IMPROVING
    elif slope < 0:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    next_value = min(max(slope * n + intercept, 0.0), 100.0)
    return RegressionResult(next_value=next_value, confidence=r_squared * 100, trend=trend)


def weekly_rate_series(records: Sequence[AttendanceRecord], *, window_days: int = FORECAST_WINDOW_DAYS) -> list[RatePoint]:
    """Weekly present rates over the last ``window_days`` of data (relative to the newest record)."""
    if not records:
        return []

    latest = max(r.work_date for r in records)
    cutoff = latest - timedelta(days=window_days)
    recent = [r for r in records if r.work_date > cutoff]

    return [RatePoint(period=week, rate=c.present / c.total * 100) for week, c in group_by_week(recent).items()]


def trend_predictions(records: Sequence[AttendanceRecord]) -> dict:
    series = weekly_rate_series(records)
    result = linear_regression(series)
    return {
        "historical_trend": [p.to_dict() for p in series],
        "prediction": {
            "next_week_rate": result.next_value,
            "confidence": result.confidence,
            "trend": result.trend.value,
        },
    }


def trend_momentum(records: Sequence[AttendanceRecord]) -> float:
    """Recent 10-record present ratio minus the 10 before it; 0 below 10 records."""
    ordered = sort_by_date(records)
    if len(ordered) < MOMENTUM_WINDOW:
        return 0.0

    recent = ordered[-MOMENTUM_WINDOW:]
    older = ordered[-2 * MOMENTUM_WINDOW:-MOMENTUM_WINDOW]
    if not older:
        return 0.0
    return present_ratio(recent) - present_ratio(older)


def predicted_rate(current_rate: float, momentum: float, patterns: Mapping[str, DayPattern]) -> float:
    rate = current_rate + momentum * 0.5
    for pattern in patterns.values():
        if pattern == DayPattern.FREQUENTLY_PRESENT:
            rate += 0.1
        elif pattern == DayPattern.FREQUENTLY_ABSENT:
            rate -= 0.1
    return max(0.0, min(1.0, rate))


def confidence_score(record_count: int) -> float:
    return min(record_count / CONFIDENCE_FULL_RECORDS, 1.0) * 100


def assess_prediction_risk(recent_rate: float, momentum: float) -> RiskLevel:
    if recent_rate < 0.5 or (recent_rate < 0.7 and momentum < 0):
        return RiskLevel.HIGH
    if recent_rate < 0.7 or momentum < -0.2:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def predict_next_day(records: Sequence[AttendanceRecord], patterns: Mapping[str, DayPattern]) -> NextDayPrediction:
    """Expected status on the working day after the newest record.

    A classified weekday decides on its own history; otherwise the recent
    present ratio does.
    """
    ordered = sort_by_date(records)
    target = next_working_day(ordered[-1].work_date)
    name = day_name(target)

    day_counts = group_by_day_of_week(ordered).get(name)
    if name in patterns and day_counts is not None:
        probability = day_counts.present / day_counts.total
    else:
        probability = present_ratio(ordered[-RISK_RECENT_WINDOW:])

    expected = StreakType.PRESENT if probability >= 0.5 else StreakType.ABSENT
    return NextDayPrediction(date=target, day=name, expected_status=expected, probability=probability)


def member_predictions(records: Sequence[AttendanceRecord], members: Sequence[User]) -> list[MemberPrediction]:
    by_member = group_by_member(records)
    out: list[MemberPrediction] = []

    for m in members:
        member_records = by_member.get(m.user_id, [])
        if len(member_records) < PREDICTION_MIN_RECORDS:
            continue

        recent_rate = present_ratio(member_records[-RISK_RECENT_WINDOW:])
        patterns = day_patterns(member_records)
        momentum = trend_momentum(member_records)

        out.append(
            MemberPrediction(
                member_id=m.user_id,
                name=m.name,
                predicted_attendance_rate=predicted_rate(recent_rate, momentum, patterns),
                risk_level=assess_prediction_risk(recent_rate, momentum),
                next_day=predict_next_day(member_records, patterns),
                confidence_score=confidence_score(len(member_records)),
                historical_attendance=recent_rate,
                momentum=momentum,
                day_patterns=patterns,
            )
        )
    return out
