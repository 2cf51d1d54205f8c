from __future__ import annotations

from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.constants import (
    FORMAL_WARNING_THRESHOLD,
    RISK_RECENT_WINDOW,
    SYSTEMIC_DAY_ABSENCE_RATE,
    SYSTEMIC_MIN_SAMPLES,
    SYSTEMIC_UNMARKED_RATE,
    VOLATILITY_MIN_RECORDS,
)
from ..core.enums import (
    WORKDAY_GROUPS,
    DayGroup,
    InterventionAction,
    InterventionPriority,
    RiskFactor,
    RiskLevel,
)
from ..users.model import User
from .grouping import group_by_day_of_week, group_by_member, present_ratio, sort_by_date, to_rates, weekly_trends
from .model import (
    DayGroupRisk,
    InterventionSuggestion,
    RiskAnalysis,
    RiskAssessment,
    RiskMetrics,
    StatusCounts,
    SystemicIssue,
)
from .scoring.base import RiskScorer
from .scoring.threshold_scorer import ThresholdRiskScorer
from .stability import count_transitions

_FACTOR_ACTIONS = {
    RiskFactor.CONSECUTIVE_ABSENCES: (InterventionAction.DIRECT_CONTACT, "Multiple consecutive absences detected"),
    RiskFactor.LOW_ATTENDANCE_RATE: (InterventionAction.PERFORMANCE_REVIEW, "Consistently low attendance rate"),
    RiskFactor.HIGH_VOLATILITY: (InterventionAction.ATTENDANCE_MONITORING, "Irregular attendance pattern"),
}


def consecutive_absences(records: Sequence[AttendanceRecord]) -> int:
    """Longest run of absent / system-absent records over the whole date-sorted history."""
    longest = current = 0
    for r in sort_by_date(records):
        if r.status.is_absence:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def volatility(records: Sequence[AttendanceRecord]) -> float:
    """Status changes per adjacent pair in [0, 1]; 0 below five records."""
    if len(records) < VOLATILITY_MIN_RECORDS:
        return 0.0
    ordered = sort_by_date(records)
    return count_transitions(ordered) / (len(ordered) - 1)


def member_risk(
    records: Sequence[AttendanceRecord],
    member: User,
    *,
    scorer: Optional[RiskScorer] = None,
) -> RiskAssessment:
    if not records:
        return RiskAssessment(
            member_id=member.user_id,
            name=member.name,
            risk_level=RiskLevel.UNKNOWN,
            risk_score=0.0,
            factors=(RiskFactor.INSUFFICIENT_DATA,),
        )

    scorer = scorer or ThresholdRiskScorer()
    ordered = sort_by_date(records)
    metrics = RiskMetrics(
        recent_attendance_rate=present_ratio(ordered[-RISK_RECENT_WINDOW:]),
        consecutive_absences=consecutive_absences(ordered),
        volatility=volatility(ordered),
    )
    result = scorer.score(metrics)

    return RiskAssessment(
        member_id=member.user_id,
        name=member.name,
        risk_level=scorer.classify(result.score),
        risk_score=result.score,
        factors=result.factors,
        metrics=metrics,
    )


def suggest_intervention(risk: RiskAssessment) -> Optional[InterventionSuggestion]:
    if risk.metrics is None:
        return None

    actions: list[InterventionAction] = []
    reasoning: list[str] = []
    for factor in risk.factors:
        mapped = _FACTOR_ACTIONS.get(factor)
        if mapped:
            actions.append(mapped[0])
            reasoning.append(mapped[1])

    if risk.metrics.recent_attendance_rate < FORMAL_WARNING_THRESHOLD:
        actions.append(InterventionAction.FORMAL_WARNING)
        reasoning.append("Critical attendance rate below 50%")

    priority = InterventionPriority.IMMEDIATE if risk.risk_level == RiskLevel.HIGH else InterventionPriority.SCHEDULED
    return InterventionSuggestion(
        member_id=risk.member_id,
        name=risk.name,
        priority=priority,
        actions=tuple(actions),
        reasoning=tuple(reasoning),
    )


def assess_members(
    records: Sequence[AttendanceRecord],
    members: Sequence[User],
    *,
    scorer: Optional[RiskScorer] = None,
) -> list[RiskAssessment]:
    by_member = group_by_member(records)
    return [member_risk(by_member.get(m.user_id, []), m, scorer=scorer) for m in members]


def intervention_suggestions(assessments: Sequence[RiskAssessment]) -> list[InterventionSuggestion]:
    out: list[InterventionSuggestion] = []
    for risk in assessments:
        if risk.risk_level not in (RiskLevel.HIGH, RiskLevel.MEDIUM):
            continue
        suggestion = suggest_intervention(risk)
        if suggestion:
            out.append(suggestion)
    return out


def day_group_risks(
    assessments: Sequence[RiskAssessment],
    members: Sequence[User],
    *,
    scorer: Optional[RiskScorer] = None,
) -> list[DayGroupRisk]:
    """Roll member assessments up per day group; the tier follows the group's mean score."""
    scorer = scorer or ThresholdRiskScorer()
    group_of = {m.user_id: m.day_group for m in members}

    grouped: dict[DayGroup, list[RiskAssessment]] = {}
    for risk in assessments:
        group = group_of.get(risk.member_id)
        if group is not None:
            grouped.setdefault(group, []).append(risk)

    out: list[DayGroupRisk] = []
    for group in (*WORKDAY_GROUPS, DayGroup.ADMIN_DAY):
        items = grouped.get(group)
        if not items:
            continue

        assessed = [r for r in items if r.risk_level != RiskLevel.UNKNOWN]
        average = sum(r.risk_score for r in assessed) / len(assessed) if assessed else 0.0
        out.append(
            DayGroupRisk(
                day_group=group.value,
                member_count=len(items),
                assessed_count=len(assessed),
                average_risk_score=average,
                high_risk_count=sum(1 for r in assessed if r.risk_level == RiskLevel.HIGH),
                medium_risk_count=sum(1 for r in assessed if r.risk_level == RiskLevel.MEDIUM),
                risk_level=scorer.classify(average) if assessed else RiskLevel.UNKNOWN,
            )
        )
    return out


def systemic_issues(records: Sequence[AttendanceRecord]) -> list[SystemicIssue]:
    issues: list[SystemicIssue] = []

    for day, counts in group_by_day_of_week(records).items():
        if counts.total < SYSTEMIC_MIN_SAMPLES:
            continue
        rate = to_rates(counts).absent_rate
        if rate >= SYSTEMIC_DAY_ABSENCE_RATE:
            issues.append(
                SystemicIssue(
                    issue_type="day_of_week_absence",
                    scope=day,
                    rate=rate,
                    sample_size=counts.total,
                    description=f"High absence rate on {day}s",
                )
            )

    overall = StatusCounts()
    for r in records:
        overall.add(r.status)
    if overall.total >= SYSTEMIC_MIN_SAMPLES:
        rate = to_rates(overall).system_absent_rate
        if rate >= SYSTEMIC_UNMARKED_RATE:
            issues.append(
                SystemicIssue(
                    issue_type="unmarked_attendance",
                    scope="all",
                    rate=rate,
                    sample_size=overall.total,
                    description="Large share of attendance was never marked by a leader",
                )
            )
    return issues


def risk_analysis(
    records: Sequence[AttendanceRecord],
    members: Sequence[User],
    *,
    assessments: Optional[Sequence[RiskAssessment]] = None,
    scorer: Optional[RiskScorer] = None,
) -> RiskAnalysis:
    if assessments is None:
        assessments = assess_members(records, members, scorer=scorer)

    return RiskAnalysis(
        high_risk_members=[r for r in assessments if r.risk_level == RiskLevel.HIGH],
        systemic_issues=systemic_issues(records),
        day_group_risks=day_group_risks(assessments, members, scorer=scorer),
        attendance_trends=weekly_trends(records),
    )
