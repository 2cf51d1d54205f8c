from __future__ import annotations

import pytest

from src.attendance_insights.attendance_insights.analytics.visualization import (
    heatmap,
    radar,
    timeline,
    trend_comparison,
)

from tests.fakes import make_user, rec, workday_series


def test_heatmap_cells_members_and_dates():
    members = [make_user(2, "Bo"), make_user(1, "Al")]
    records = [
        rec(1, "2024-01-02", "A"),
        rec(2, "2024-01-01"),
        rec(1, "2024-01-01"),
        rec(9, "2024-01-03"),
    ]

    data = heatmap(records, members)

    assert data["members"] == ["Bo", "Al"]
    assert data["dates"] == ["2024-01-01", "2024-01-02"]
    assert {"member": "Al", "member_id": 1, "date": "2024-01-02", "value": 0} in data["data"]
    assert all(cell["member_id"] != 9 for cell in data["data"])
    assert len(data["data"]) == 3


def test_timeline_counts_system_absent_as_absent():
    records = [rec(1, "2024-01-01"), rec(2, "2024-01-01", "S"), rec(1, "2024-01-02", "A")]

    rows = timeline(records)

    assert rows[0] == {
        "date": "2024-01-01",
        "day_of_week": "Monday",
        "present": 1,
        "absent": 1,
        "total": 2,
        "present_rate": 50.0,
    }
    assert rows[1]["present_rate"] == 0.0


def test_radar_ignores_weekends_and_scores_consistency():
    records = workday_series(1, "2024-01-01", "PPAP") + [rec(1, "2024-01-06", "A")]

    data = radar(records)

    assert data["labels"] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert data["datasets"][0]["data"] == [100.0, 100.0, 0.0, 100.0, 0.0]
    metrics = data["metrics"]
    assert metrics["longest_streak"] == 2
    assert metrics["volatility"] == pytest.approx(200 / 3)
    assert metrics["consistency"] == pytest.approx(100 / 3)
    assert metrics["attendance_by_day"]["Friday"] == {"total": 0, "present": 0, "rate": 0.0}


def test_radar_without_records():
    metrics = radar([])["metrics"]
    assert metrics["consistency"] == 100.0
    assert metrics["volatility"] == 0.0
    assert metrics["longest_streak"] == 0


def test_trend_comparison_per_group():
    data = trend_comparison(
        {
            "Monday": workday_series(1, "2024-01-01", "PPAP"),
            "Tuesday": [],
        }
    )

    assert list(data) == ["Monday", "Tuesday"]
    assert data["Monday"]["overall"] == {"total": 4, "present": 3, "absent": 1, "rate": 75.0}
    assert data["Monday"]["weekly"] == [{"week": "2024-01-01", "rate": 75.0}]
    assert data["Tuesday"]["overall"]["rate"] == 0.0
    assert data["Tuesday"]["daily"] == []
