"""Response assembly for the analytics endpoints.

Pure composition of the engine stages into JSON-ready dicts; member order
always follows the ``members`` argument.
"""

from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import DayGroup
from ..users.model import User
from . import visualization
from .forecast import member_predictions, trend_predictions
from .grouping import day_of_week_trends, weekly_trends
from .risk import assess_members, intervention_suggestions, risk_analysis
from .scoring.base import RiskScorer
from .stability import member_patterns, stability_metrics


def summary(members: Sequence[User], *, start: date, end: date, day_group: Optional[DayGroup]) -> dict:
    return {
        "period": {"start_date": start.isoformat(), "end_date": end.isoformat()},
        "total_members": len(members),
        "day_group": day_group.value if day_group else "All",
    }


def compute_trends(
    records: Sequence[AttendanceRecord],
    members: Sequence[User],
    *,
    start: date,
    end: date,
    day_group: Optional[DayGroup] = None,
) -> dict:
    return {
        "weekly_trends": [t.to_dict("week") for t in weekly_trends(records)],
        "day_patterns": [t.to_dict("day") for t in day_of_week_trends(records)],
        "stability_metrics": stability_metrics(records, members),
        "patterns": [p.to_dict() for p in member_patterns(records, members)],
        "summary": summary(members, start=start, end=end, day_group=day_group),
    }


def compute_predictions(
    records: Sequence[AttendanceRecord],
    members: Sequence[User],
    *,
    scorer: Optional[RiskScorer] = None,
) -> dict:
    assessments = assess_members(records, members, scorer=scorer)
    return {
        "member_predictions": [p.to_dict() for p in member_predictions(records, members)],
        "risk_analysis": risk_analysis(records, members, assessments=assessments, scorer=scorer).to_dict(),
        "trend_predictions": trend_predictions(records),
        "intervention_suggestions": [s.to_dict() for s in intervention_suggestions(assessments)],
    }


def compute_radar(records: Sequence[AttendanceRecord]) -> dict:
    return visualization.radar(records)


def compute_heatmap(records: Sequence[AttendanceRecord], members: Sequence[User]) -> dict:
    return visualization.heatmap(records, members)


def compute_timeline(records: Sequence[AttendanceRecord]) -> list[dict]:
    return visualization.timeline(records)


def compute_trend_comparison(records_by_group: Mapping[str, Sequence[AttendanceRecord]]) -> dict:
    return visualization.trend_comparison(records_by_group)
