from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.constants import HIGH_RISK_SCORE, MEDIUM_RISK_SCORE
from ...core.enums import RiskFactor, RiskLevel
from ..model import RiskMetrics


@dataclass(frozen=True)
class RiskScore:
    score: float
    factors: tuple[RiskFactor, ...]


class RiskScorer(ABC):
    """Scorer interface (Strategy Pattern for risk classification)."""

    @abstractmethod
    def score(self, metrics: RiskMetrics) -> RiskScore:
        raise NotImplementedError

    def classify(self, score: float) -> RiskLevel:
        if score >= HIGH_RISK_SCORE:
            return RiskLevel.HIGH
        if score >= MEDIUM_RISK_SCORE:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW
