from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import (
    AttendanceStatus,
    DayPattern,
    InterventionAction,
    InterventionPriority,
    RiskFactor,
    RiskLevel,
    StreakType,
    Trend,
)


@dataclass
class StatusCounts:
    """Mutable accumulator used while grouping; ``total`` is always the sum of the parts."""

    present: int = 0
    absent: int = 0
    system_absent: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.system_absent

    def add(self, status: AttendanceStatus) -> None:
        if status == AttendanceStatus.PRESENT:
            self.present += 1
        elif status == AttendanceStatus.ABSENT:
            self.absent += 1
        else:
            self.system_absent += 1

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "system_absent": self.system_absent,
            "total": self.total,
        }


@dataclass(frozen=True)
class Rates:
    """Percentages of a bucket total. ``absent_rate`` includes system absences."""

    present_rate: float = 0.0
    absent_rate: float = 0.0
    system_absent_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "present_rate": self.present_rate,
            "absent_rate": self.absent_rate,
            "system_absent_rate": self.system_absent_rate,
        }


@dataclass(frozen=True)
class BucketTrend:
    key: str
    rates: Rates
    total: int

    def to_dict(self, key_name: str) -> dict:
        return {key_name: self.key, **self.rates.to_dict(), "total": self.total}


@dataclass(frozen=True)
class StabilityMetric:
    stability_score: float
    attendance_rate: float
    variability_index: float
    trend: Trend

    def to_dict(self) -> dict:
        return {
            "stability_score": self.stability_score,
            "attendance_rate": self.attendance_rate,
            "variability_index": self.variability_index,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class Streak:
    type: StreakType
    start: date
    length: int

    def to_dict(self) -> dict:
        return {"type": self.type.value, "start": self.start.isoformat(), "length": self.length}


@dataclass(frozen=True)
class MemberPattern:
    member_id: int
    name: str
    day_patterns: dict[str, DayPattern]
    streaks: list[Streak]
    regularity_score: float

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "day_patterns": {day: p.value for day, p in self.day_patterns.items()},
            "streaks": [s.to_dict() for s in self.streaks],
            "regularity_score": self.regularity_score,
        }


@dataclass(frozen=True)
class RatePoint:
    period: str
    rate: float

    def to_dict(self) -> dict:
        return {"week": self.period, "rate": self.rate}


@dataclass(frozen=True)
class RegressionResult:
    next_value: Optional[float]
    confidence: float
    trend: Trend


@dataclass(frozen=True)
class NextDayPrediction:
    date: date
    day: str
    expected_status: StreakType
    probability: float

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "expected_status": self.expected_status.value,
            "probability": self.probability,
        }


@dataclass(frozen=True)
class MemberPrediction:
    member_id: int
    name: str
    predicted_attendance_rate: float
    risk_level: RiskLevel
    next_day: NextDayPrediction
    confidence_score: float
    historical_attendance: float
    momentum: float
    day_patterns: dict[str, DayPattern]

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "predicted_attendance_rate": self.predicted_attendance_rate,
            "risk_level": self.risk_level.value,
            "next_day_prediction": self.next_day.to_dict(),
            "confidence_score": self.confidence_score,
            "factors": {
                "historical_attendance": self.historical_attendance,
                "momentum": self.momentum,
                "day_patterns": {day: p.value for day, p in self.day_patterns.items()},
            },
        }


@dataclass(frozen=True)
class RiskMetrics:
    recent_attendance_rate: float
    consecutive_absences: int
    volatility: float

    def to_dict(self) -> dict:
        return {
            "recent_attendance_rate": self.recent_attendance_rate,
            "consecutive_absences": self.consecutive_absences,
            "volatility": self.volatility,
        }


@dataclass(frozen=True)
class RiskAssessment:
    member_id: int
    name: str
    risk_level: RiskLevel
    risk_score: float
    factors: tuple[RiskFactor, ...]
    metrics: Optional[RiskMetrics] = None

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "risk_level": self.risk_level.value,
            "risk_score": self.risk_score,
            "factors": [f.value for f in self.factors],
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }


@dataclass(frozen=True)
class InterventionSuggestion:
    member_id: int
    name: str
    priority: InterventionPriority
    actions: tuple[InterventionAction, ...]
    reasoning: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "priority": self.priority.value,
            "actions": [a.value for a in self.actions],
            "reasoning": list(self.reasoning),
        }


@dataclass(frozen=True)
class DayGroupRisk:
    day_group: str
    member_count: int
    assessed_count: int
    average_risk_score: float
    high_risk_count: int
    medium_risk_count: int
    risk_level: RiskLevel

    def to_dict(self) -> dict:
        return {
            "day_group": self.day_group,
            "member_count": self.member_count,
            "assessed_count": self.assessed_count,
            "average_risk_score": self.average_risk_score,
            "high_risk_count": self.high_risk_count,
            "medium_risk_count": self.medium_risk_count,
            "risk_level": self.risk_level.value,
        }


@dataclass(frozen=True)
class SystemicIssue:
    issue_type: str
    scope: str
    rate: float
    sample_size: int
    description: str

    def to_dict(self) -> dict:
        return {
            "type": self.issue_type,
            "scope": self.scope,
            "rate": self.rate,
            "sample_size": self.sample_size,
            "description": self.description,
        }


@dataclass(frozen=True)
class RiskAnalysis:
    high_risk_members: list[RiskAssessment] = field(default_factory=list)
    systemic_issues: list[SystemicIssue] = field(default_factory=list)
    day_group_risks: list[DayGroupRisk] = field(default_factory=list)
    attendance_trends: list[BucketTrend] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "high_risk_members": [r.to_dict() for r in self.high_risk_members],
            "systemic_issues": [i.to_dict() for i in self.systemic_issues],
            "day_group_risks": [g.to_dict() for g in self.day_group_risks],
            "attendance_trends": [t.to_dict("week") for t in self.attendance_trends],
        }
