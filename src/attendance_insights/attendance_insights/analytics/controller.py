from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.http import leader_scope, ok, query_date, roles_required
from ..common.validators import parse_day_group
from ..core.constants import DEFAULT_RADAR_TIMEFRAME_DAYS
from ..core.enums import DayGroup, Role
from ..core.exceptions import ValidationError
from ..container import Container


def _timeframe() -> int:
    value = request.args.get("timeframe")
    if not value:
        return DEFAULT_RADAR_TIMEFRAME_DAYS
    try:
        return int(value)
    except ValueError:
        raise ValidationError("timeframe must be an integer") from None


def _day_groups() -> Optional[list[DayGroup]]:
    # accepts ?dayGroups=Monday,Tuesday as well as repeated ?dayGroups=...
    raw = [part for value in request.args.getlist("dayGroups") for part in value.split(",") if part.strip()]
    if not raw:
        return None
    return [parse_day_group(v.strip()) for v in raw]


def register(app: Flask, container: Container) -> None:
    analytics = container.analytics_service

    def range_args() -> dict:
        return {
            "start": query_date("startDate"),
            "end": query_date("endDate"),
            "day_group": parse_day_group(request.args.get("dayGroup")),
            "scope_day_group": leader_scope(),
        }

    @app.route("/api/attendance/analytics/trends", endpoint="analytics_trends")
    @roles_required(Role.ADMIN, Role.LEADER)
    def trends():
        return ok(analytics.get_trends(**range_args()))

    @app.route("/api/attendance/analytics/predictions", endpoint="analytics_predictions")
    @roles_required(Role.ADMIN, Role.LEADER)
    def predictions():
        return ok(analytics.get_predictions(**range_args()))

    @app.route("/api/attendance/analytics/detailed", endpoint="analytics_period_report")
    @roles_required(Role.ADMIN, Role.LEADER)
    def period_report():
        return ok(analytics.get_period_report(**range_args()))

    @app.route("/api/attendance/visualizations/heatmap", endpoint="visualization_heatmap")
    @roles_required(Role.ADMIN, Role.LEADER)
    def heatmap():
        return ok(analytics.get_heatmap(**range_args()))

    @app.route("/api/attendance/visualizations/timeline", endpoint="visualization_timeline")
    @roles_required(Role.ADMIN, Role.LEADER)
    def timeline():
        return ok(analytics.get_timeline(**range_args()))

    @app.route("/api/attendance/visualizations/radar/<int:member_id>", endpoint="visualization_radar")
    @roles_required(Role.ADMIN, Role.LEADER)
    def radar(member_id: int):
        return ok(analytics.get_member_radar(member_id, timeframe=_timeframe(), scope_day_group=leader_scope()))

    @app.route("/api/attendance/visualizations/trends/compare", endpoint="visualization_trend_comparison")
    @roles_required(Role.ADMIN, Role.LEADER)
    def trend_comparison():
        return ok(
            analytics.get_trend_comparison(
                day_groups=_day_groups(),
                timeframe=_timeframe(),
                scope_day_group=leader_scope(),
            )
        )
