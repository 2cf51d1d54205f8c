from __future__ import annotations

from datetime import date

import pytest

from src.attendance_insights.attendance_insights.analytics.stability import (
    day_patterns,
    identify_streaks,
    member_patterns,
    member_stability,
    regularity_score,
    stability_metrics,
    status_runs,
)
from src.attendance_insights.attendance_insights.core.enums import DayPattern, StreakType, Trend

from tests.fakes import make_user, rec, workday_series


def test_empty_history_reports_insufficient_data():
    metric = member_stability([])
    assert metric.trend == Trend.INSUFFICIENT_DATA
    assert (metric.stability_score, metric.attendance_rate, metric.variability_index) == (0.0, 0.0, 0.0)


def test_stability_scores():
    metric = member_stability(workday_series(1, "2024-01-01", "PPAPP"))

    assert metric.stability_score == pytest.approx(60.0)
    assert metric.attendance_rate == pytest.approx(80.0)
    assert metric.variability_index == pytest.approx(0.4)
    assert metric.trend == Trend.IMPROVING


def test_trend_uses_last_five_records_only():
    assert member_stability(workday_series(1, "2024-01-01", "PPPPPAAAAP")).trend == Trend.DECLINING
    assert member_stability(workday_series(1, "2024-01-01", "AAAAAAPAPA")).trend == Trend.STABLE


def test_stability_does_not_depend_on_input_order():
    records = workday_series(1, "2024-01-01", "PAPPA")
    assert member_stability(records) == member_stability(list(reversed(records)))


def test_streaks_require_three_and_include_trailing_run():
    records = workday_series(1, "2024-01-01", "PPPPAAAPAPPP")

    streaks = identify_streaks(records)

    assert [(s.type, s.length) for s in streaks] == [
        (StreakType.PRESENT, 4),
        (StreakType.ABSENT, 3),
        (StreakType.PRESENT, 3),
    ]
    assert streaks[1].start == date(2024, 1, 5)
    assert all(s.length >= 3 for s in streaks)


def test_runs_cover_every_record_and_merge_system_absences():
    records = workday_series(1, "2024-01-01", "PASAPP")
    runs = status_runs(records)

    assert sum(r.length for r in runs) == len(records)
    assert [(r.type, r.length) for r in runs] == [
        (StreakType.PRESENT, 1),
        (StreakType.ABSENT, 3),
        (StreakType.PRESENT, 2),
    ]


def test_day_patterns_need_three_samples():
    mondays = [rec(1, d) for d in ("2024-01-01", "2024-01-08", "2024-01-15")]
    tuesdays = [rec(1, d, "A") for d in ("2024-01-02", "2024-01-09")]
    wednesdays = [rec(1, d, "S") for d in ("2024-01-03", "2024-01-10", "2024-01-17")]

    patterns = day_patterns(mondays + tuesdays + wednesdays)

    assert patterns == {
        "Monday": DayPattern.FREQUENTLY_PRESENT,
        "Wednesday": DayPattern.FREQUENTLY_ABSENT,
    }


def test_day_patterns_middle_rates_are_unclassified():
    records = [rec(1, "2024-01-01"), rec(1, "2024-01-08", "A"), rec(1, "2024-01-15")]
    assert day_patterns(records) == {}


def test_regularity_score():
    weekly = [rec(1, d) for d in ("2024-01-01", "2024-01-08", "2024-01-15")]
    assert regularity_score(weekly) == 100.0

    # gaps of 1 and 15 days: std 7 -> 0
    uneven = [rec(1, d) for d in ("2024-01-01", "2024-01-02", "2024-01-17")]
    assert regularity_score(uneven) == 0.0

    assert regularity_score(weekly[:2]) == 0.0


def test_stability_metrics_keeps_member_order_and_reports_missing_members():
    members = [make_user(2, "Bo"), make_user(1, "Al")]
    rows = stability_metrics(workday_series(1, "2024-01-01", "PPP"), members)

    assert [r["member_id"] for r in rows] == [2, 1]
    assert rows[0]["trend"] == "insufficient_data"
    assert rows[1]["stability_score"] == 100.0


def test_member_patterns_skips_members_without_records_or_patterns():
    members = [make_user(1), make_user(2), make_user(3)]
    records = workday_series(1, "2024-01-01", "PPPP") + workday_series(2, "2024-01-01", "PA")

    patterns = member_patterns(records, members)

    assert [p.member_id for p in patterns] == [1]
    assert patterns[0].to_dict()["streaks"] == [{"type": "present", "start": "2024-01-01", "length": 4}]
