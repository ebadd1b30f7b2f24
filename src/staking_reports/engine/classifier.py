from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from staking_reports.core.errors import NormalizationError
from staking_reports.core.report_types import RiskAssessment, RiskLevel


@dataclass(frozen=True)
class LevelPlaybook:
    mitigation_strategies: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


DEFAULT_PLAYBOOKS: Dict[RiskLevel, LevelPlaybook] = {
    RiskLevel.LOW: LevelPlaybook(
        mitigation_strategies=["Regular audits", "Insurance coverage"],
        recommendations=["Maintain current practices", "Monitor market conditions"],
    ),
    RiskLevel.MEDIUM: LevelPlaybook(
        mitigation_strategies=["Enhanced monitoring", "Emergency protocols"],
        recommendations=["Implement additional safeguards", "Review risk management"],
    ),
    RiskLevel.HIGH: LevelPlaybook(
        mitigation_strategies=["Immediate audit", "Risk reduction measures"],
        recommendations=["Implement comprehensive risk management", "Consider reducing exposure"],
    ),
}

DEFAULT_BREAKPOINTS: Tuple[Tuple[int, RiskLevel], ...] = (
    (1_000_000, RiskLevel.LOW),
    (5_000_000, RiskLevel.MEDIUM),
)


class RiskClassifier:
    """
    Unweighted-sum risk classifier.

    Factors are added as raw magnitudes regardless of their natural units
    (a staked amount next to a percentage); scores below a breakpoint map to
    its level, anything past the last breakpoint maps to `default_level`.
    """

    def __init__(
        self,
        breakpoints: Sequence[Tuple[int, RiskLevel]] = DEFAULT_BREAKPOINTS,
        default_level: RiskLevel = RiskLevel.HIGH,
        playbooks: Mapping[RiskLevel, LevelPlaybook] = DEFAULT_PLAYBOOKS,
    ):
        bounds = [int(b) for b, _ in breakpoints]
        if any(lo >= hi for lo, hi in zip(bounds, bounds[1:])):
            raise ValueError("Invalid breakpoints: require strictly increasing bounds")
        self.breakpoints = tuple((int(b), level) for b, level in breakpoints)
        self.default_level = default_level
        self.playbooks = dict(playbooks)

    def score(self, risk_factors: Mapping[str, Any]) -> int:
        total = 0
        for name, value in risk_factors.items():
            if isinstance(value, bool):
                raise NormalizationError(f"Risk factor {name} is not an integer", domain="riskFactors", field=name)
            try:
                total += value if isinstance(value, int) else int(str(value).strip())
            except ValueError as exc:
                raise NormalizationError(
                    f"Risk factor {name} is not an integer: {value!r}",
                    domain="riskFactors",
                    field=name,
                ) from exc
        return total

    def level_for(self, score: int) -> RiskLevel:
        for bound, level in self.breakpoints:
            if score < bound:
                return level
        return self.default_level

    def classify(self, risk_factors: Mapping[str, Any]) -> RiskAssessment:
        total = self.score(risk_factors)
        level = self.level_for(total)
        playbook = self.playbooks.get(level, LevelPlaybook())
        return RiskAssessment(
            score=total,
            level=level,
            mitigation_strategies=list(playbook.mitigation_strategies),
            recommendations=list(playbook.recommendations),
        )
