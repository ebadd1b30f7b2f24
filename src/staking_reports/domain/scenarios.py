from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Tuple

from staking_reports.core.errors import NormalizationError
from staking_reports.core.report_types import MetricBundle


# Results are whole-token totalStaked in millions (high-participation -> 1, low -> 0.1),
# not base units.
RESULT_SCALE = Decimal(1_000_000)


@dataclass(frozen=True)
class ScenarioDefinition:
    """Illustrative staking scenario; amounts are whole tokens, APR in basis points."""
    name: str
    key: str
    description: str
    total_staked: int
    total_users: int
    avg_apr_bps: int
    user_growth: int

    def raw_fields(self, decimals: int) -> Dict[str, Any]:
        return {
            "description": self.description,
            "totalStaked": self.total_staked * 10 ** decimals,
            "totalUsers": self.total_users,
            "avgAPR": self.avg_apr_bps,
            "userGrowth": self.user_growth,
        }


SCENARIOS: Tuple[ScenarioDefinition, ...] = (
    ScenarioDefinition(
        name="high-participation",
        key="highParticipation",
        description="High participation scenario",
        total_staked=1_000_000,
        total_users=10_000,
        avg_apr_bps=1200,
        user_growth=20,
    ),
    ScenarioDefinition(
        name="low-participation",
        key="lowParticipation",
        description="Low participation scenario",
        total_staked=100_000,
        total_users=1_000,
        avg_apr_bps=500,
        user_growth=-5,
    ),
    ScenarioDefinition(
        name="growth",
        key="growth",
        description="Growth scenario",
        total_staked=1_500_000,
        total_users=15_000,
        avg_apr_bps=1000,
        user_growth=30,
    ),
    ScenarioDefinition(
        name="decline",
        key="decline",
        description="Decline scenario",
        total_staked=800_000,
        total_users=8_000,
        avg_apr_bps=800,
        user_growth=-10,
    ),
)

SCENARIOS_BY_NAME: Dict[str, ScenarioDefinition] = {s.name: s for s in SCENARIOS}

# Fixed behavioural assumptions reported next to the scenarios.
USER_BEHAVIOR_KEY = "userBehavior"
USER_BEHAVIOR = {
    "avgStake": 1000,
    "avgStakingPeriod": 30,
    "retentionRate": 85,
    "userSatisfaction": 90,
}


def user_behavior_raw(decimals: int) -> Dict[str, Any]:
    raw = dict(USER_BEHAVIOR)
    raw["avgStake"] = USER_BEHAVIOR["avgStake"] * 10 ** decimals
    return raw


def compute_result(bundle: MetricBundle) -> int | float:
    """Total staked in millions of tokens, comparable across scenarios."""
    try:
        value = Decimal(str(bundle.get("totalStaked"))) / RESULT_SCALE
    except (InvalidOperation, ValueError) as exc:
        raise NormalizationError(
            f"Scenario {bundle.domain} has no usable totalStaked",
            domain=bundle.domain,
            field="totalStaked",
        ) from exc
    if value == value.to_integral_value():
        return int(value)
    return float(value)
