from __future__ import annotations

from ...core.constants import (
    CONSECUTIVE_ABSENCE_THRESHOLD,
    CONSECUTIVE_ABSENCE_WEIGHT,
    HIGH_VOLATILITY_THRESHOLD,
    HIGH_VOLATILITY_WEIGHT,
    LOW_ATTENDANCE_THRESHOLD,
    LOW_ATTENDANCE_WEIGHT,
)
from ...core.enums import RiskFactor
from ..model import RiskMetrics
from .base import RiskScore, RiskScorer


class ThresholdRiskScorer(RiskScorer):
    """Standard rule: each triggered threshold adds a weighted amount to the score."""

    def score(self, metrics: RiskMetrics) -> RiskScore:
        factors: list[RiskFactor] = []
        total = 0.0

        if metrics.consecutive_absences >= CONSECUTIVE_ABSENCE_THRESHOLD:
            factors.append(RiskFactor.CONSECUTIVE_ABSENCES)
            total += metrics.consecutive_absences * CONSECUTIVE_ABSENCE_WEIGHT

        if metrics.recent_attendance_rate < LOW_ATTENDANCE_THRESHOLD:
            factors.append(RiskFactor.LOW_ATTENDANCE_RATE)
            total += (1 - metrics.recent_attendance_rate) * LOW_ATTENDANCE_WEIGHT

        if metrics.volatility > HIGH_VOLATILITY_THRESHOLD:
            factors.append(RiskFactor.HIGH_VOLATILITY)
            total += metrics.volatility * HIGH_VOLATILITY_WEIGHT

        return RiskScore(score=total, factors=tuple(factors))
