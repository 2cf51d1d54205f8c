from __future__ import annotations

from datetime import date

import pytest

from src.attendance_insights.attendance_insights.analytics.service import AnalyticsService
from src.attendance_insights.attendance_insights.core.enums import DayGroup
from src.attendance_insights.attendance_insights.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

from tests.fakes import InMemoryAttendanceRepository, workday_series

START = date(2024, 1, 1)
END = date(2024, 1, 12)


@pytest.fixture
def seeded(users_repo):
    records = (
        workday_series(3, "2024-01-01", "PPAPPPPPPP")
        + workday_series(4, "2024-01-01", "PAAAPPPPPA")
        + workday_series(5, "2024-01-01", "PPPPPPPPPP")
        + workday_series(6, "2024-01-01", "AAAAAAAAAA")
    )
    return InMemoryAttendanceRepository(records, users=users_repo)


@pytest.fixture
def service(seeded, users_repo, cache, fixed_now):
    return AnalyticsService(seeded, users_repo, cache, cache_ttl=60, clock=lambda: fixed_now)


def test_trends_only_include_active_members_of_the_group(service, seeded):
    result = service.get_trends(start=START, end=END, day_group=DayGroup.MONDAY)

    assert [m["member_id"] for m in result["stability_metrics"]] == [3, 4]
    assert result["summary"]["day_group"] == "Monday"
    assert seeded.fetch_calls == [((3, 4), START, END)]


def test_results_are_cached_per_parameters(service, seeded):
    first = service.get_predictions(start=START, end=END)
    second = service.get_predictions(start=START, end=END)
    service.get_predictions(start=START, end=END, day_group=DayGroup.TUESDAY)

    assert first == second
    assert len(seeded.fetch_calls) == 2


def test_without_cache_every_call_fetches(seeded, users_repo):
    svc = AnalyticsService(seeded, users_repo)
    svc.get_heatmap(start=START, end=END)
    svc.get_heatmap(start=START, end=END)
    assert len(seeded.fetch_calls) == 2


def test_inverted_date_range_is_rejected(service):
    with pytest.raises(ValidationError):
        service.get_timeline(start=END, end=START)


def test_leader_scope(service):
    with pytest.raises(AuthorizationError):
        service.get_trends(start=START, end=END, day_group=DayGroup.TUESDAY, scope_day_group=DayGroup.MONDAY)

    result = service.get_heatmap(start=START, end=END, scope_day_group=DayGroup.MONDAY)
    assert result["members"] == ["Ada", "Ben"]


def test_repository_failures_become_upstream_errors(seeded, users_repo):
    seeded.fail = True
    svc = AnalyticsService(seeded, users_repo)
    with pytest.raises(UpstreamError):
        svc.get_trends(start=START, end=END)

    seeded.fail = False
    users_repo.fail = True
    with pytest.raises(UpstreamError):
        svc.get_period_report(start=START, end=END)


def test_group_without_members_skips_the_record_fetch(service, seeded):
    result = service.get_timeline(start=START, end=END, day_group=DayGroup.FRIDAY)
    assert result == []
    assert seeded.fetch_calls == []


def test_member_radar_uses_timeframe_before_now(service, seeded):
    data = service.get_member_radar(3, timeframe=7)

    assert seeded.fetch_calls == [((3,), date(2024, 1, 3), date(2024, 1, 10))]
    assert data["labels"][0] == "Monday"


def test_member_radar_checks(service):
    with pytest.raises(NotFoundError):
        service.get_member_radar(2)
    with pytest.raises(NotFoundError):
        service.get_member_radar(99)
    with pytest.raises(AuthorizationError):
        service.get_member_radar(5, scope_day_group=DayGroup.MONDAY)
    with pytest.raises(ValidationError):
        service.get_member_radar(3, timeframe=0)


def test_trend_comparison_defaults(service):
    everything = service.get_trend_comparison()
    assert list(everything) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

    own = service.get_trend_comparison(scope_day_group=DayGroup.MONDAY)
    assert list(own) == ["Monday"]
    assert own["Monday"]["overall"]["total"] == 16

    with pytest.raises(AuthorizationError):
        service.get_trend_comparison(day_groups=[DayGroup.TUESDAY], scope_day_group=DayGroup.MONDAY)


def test_period_report(service):
    report = service.get_period_report(start=START, end=END, day_group=DayGroup.MONDAY)

    assert report["summary"]["total_working_days"] == 10
    ben = report["member_stats"][1]
    assert ben["name"] == "Ben"
    assert ben["max_consecutive_absences"] == 3
