from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FieldKind(str, Enum):
    TOKEN_AMOUNT = "token_amount"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "text"
    PASSTHROUGH = "passthrough"


_DEFAULT_ABI_TYPES = {
    FieldKind.TOKEN_AMOUNT: "uint256",
    FieldKind.INTEGER: "uint256",
    FieldKind.NUMBER: "uint256",
    FieldKind.BOOLEAN: "bool",
    FieldKind.TEXT: "string",
    FieldKind.PASSTHROUGH: "uint256[]",
}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    abi_type: Optional[str] = None

    @property
    def solidity_type(self) -> str:
        return self.abi_type or _DEFAULT_ABI_TYPES[self.kind]


@dataclass(frozen=True)
class DomainSchema:
    name: str
    fields: Tuple[FieldSpec, ...]

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)


def _schema(name: str, *fields: Tuple[str, FieldKind]) -> DomainSchema:
    return DomainSchema(name=name, fields=tuple(FieldSpec(n, k) for n, k in fields))


T = FieldKind.TOKEN_AMOUNT
N = FieldKind.NUMBER
B = FieldKind.BOOLEAN
S = FieldKind.TEXT
P = FieldKind.PASSTHROUGH


# cost analysis
COST_BREAKDOWN = _schema(
    "costBreakdown",
    ("developmentCost", T),
    ("maintenanceCost", T),
    ("operationalCost", T),
    ("securityCost", T),
    ("gasCost", T),
    ("totalCost", T),
)
EFFICIENCY_METRICS = _schema(
    "efficiencyMetrics",
    ("costPerUser", T),
    ("costPerStake", T),
    ("roi", N),
    ("costEffectiveness", N),
    ("efficiencyScore", N),
)
COST_OPTIMIZATION = _schema(
    "costOptimization",
    ("optimizationOpportunities", S),
    ("potentialSavings", T),
    ("implementationTime", N),
    ("riskLevel", S),
)
REVENUE_ANALYSIS = _schema(
    "revenueAnalysis",
    ("totalRevenue", T),
    ("stakingFees", T),
    ("platformFees", T),
    ("netProfit", T),
    ("profitMargin", N),
)

# compliance
COMPLIANCE_STATUS = _schema(
    "complianceStatus",
    ("regulatoryCompliance", B),
    ("legalCompliance", B),
    ("financialCompliance", B),
    ("technicalCompliance", B),
    ("overallScore", N),
)
REGULATORY_REQUIREMENTS = _schema(
    "regulatoryRequirements",
    ("licensing", B),
    ("KYC", B),
    ("AML", B),
    ("stakingRequirements", B),
    ("investorProtection", B),
)
SECURITY_STANDARDS = _schema(
    "securityStandards",
    ("codeAudits", B),
    ("accessControl", B),
    ("securityTesting", B),
    ("incidentResponse", B),
    ("backupSystems", B),
)
STAKING_COMPLIANCE = _schema(
    "stakingCompliance",
    ("stakingRequirements", B),
    ("rewardDistribution", B),
    ("userProtection", B),
    ("lockupPeriods", B),
    ("transparency", B),
)

# monitoring
PROTOCOL_STATUS = _schema(
    "protocolStatus",
    ("totalStaked", T),
    ("totalUsers", N),
    ("totalRewards", T),
    ("activePools", N),
    ("paused", B),
    ("lastUpdate", N),
)
USER_METRICS = _schema(
    "userMetrics",
    ("avgStake", T),
    ("avgAPR", N),
    ("userGrowth", N),
    ("retentionRate", N),
    ("totalActiveUsers", N),
)
REWARD_METRICS = _schema(
    "rewardMetrics",
    ("totalRewardsDistributed", T),
    ("avgRewardPerUser", T),
    ("rewardDistributionRate", N),
    ("totalRewardRecipients", N),
)
PERFORMANCE_INDICATORS = _schema(
    "performanceIndicators",
    ("efficiencyScore", N),
    ("processingTime", N),
    ("throughput", N),
    ("uptime", N),
    ("errorRate", N),
)

# performance
PERFORMANCE_METRICS = _schema(
    "performanceMetrics",
    ("responseTime", N),
    ("transactionSpeed", N),
    ("throughput", N),
    ("uptime", N),
    ("errorRate", N),
    ("gasEfficiency", N),
)
EFFICIENCY_SCORES = _schema(
    "efficiencyScores",
    ("stakingEfficiency", N),
    ("rewardDistribution", N),
    ("userEngagement", N),
    ("capitalUtilization", N),
    ("profitability", N),
)
USER_EXPERIENCE = _schema(
    "userExperience",
    ("interfaceUsability", N),
    ("transactionEase", N),
    ("mobileCompatibility", N),
    ("loadingSpeed", N),
    ("customerSatisfaction", N),
)
SCALABILITY = _schema(
    "scalability",
    ("userCapacity", N),
    ("transactionCapacity", N),
    ("storageCapacity", N),
    ("networkCapacity", N),
    ("futureGrowth", N),
)

# user analytics
USER_DEMOGRAPHICS = _schema(
    "userDemographics",
    ("totalUsers", N),
    ("activeUsers", N),
    ("newUsers", N),
    ("returningUsers", N),
    ("userDistribution", P),
)
ENGAGEMENT_METRICS = _schema(
    "engagementMetrics",
    ("avgSessionTime", N),
    ("dailyActiveUsers", N),
    ("weeklyActiveUsers", N),
    ("monthlyActiveUsers", N),
    ("userRetention", N),
    ("engagementScore", N),
)
STAKING_PATTERNS = _schema(
    "stakingPatterns",
    ("avgStakeAmount", T),
    ("stakingFrequency", N),
    ("popularStakingPeriods", P),
    ("peakStakingHours", P),
    ("averageStakingPeriod", N),
    ("withdrawalRate", N),
)
USER_SEGMENTS = _schema(
    "userSegments",
    ("casualStakers", N),
    ("activeStakers", N),
    ("longTermStakers", N),
    ("shortTermStakers", N),
    ("highValueStakers", N),
    ("segmentDistribution", P),
)

# risk assessment: raw magnitudes, summed unweighted by the classifier
RISK_FACTORS = _schema(
    "riskFactors",
    ("totalStaked", FieldKind.INTEGER),
    ("stakingAPR", FieldKind.INTEGER),
    ("liquidityRatio", FieldKind.INTEGER),
    ("userRisk", FieldKind.INTEGER),
    ("contractRisk", FieldKind.INTEGER),
)

# strategy
CURRENT_STRATEGY = _schema(
    "currentStrategy",
    ("apr", N),
    ("stakingPeriod", N),
    ("rewardDistribution", N),
    ("lockupPeriod", N),
)
STRATEGY_PERFORMANCE = _schema(
    "performanceMetrics",
    ("totalStaked", T),
    ("totalRewards", T),
    ("userGrowth", N),
    ("retentionRate", N),
)
RISK_PROFILE = _schema(
    "riskProfile",
    ("marketRisk", N),
    ("liquidityRisk", N),
    ("smartContractRisk", N),
    ("operationalRisk", N),
)
STRATEGY_RECOMMENDATION = _schema(
    "recommendation",
    ("action", S),
    ("timing", N),
    ("expectedOutcome", S),
)
STRATEGY_TIMELINE_ENTRY = _schema(
    "strategyTimeline",
    ("timestamp", N),
    ("strategy", S),
    ("performance", N),
    ("changes", S),
)

# protocol summary
STAKING_STATS = _schema(
    "stats",
    ("totalStaked", T),
    ("totalRewards", T),
    ("totalUsers", N),
    ("totalPools", N),
    ("avgAPR", N),
)
POOL_INFO = _schema(
    "poolInfo",
    ("totalPools", N),
    ("activePools", N),
    ("totalStaked", T),
)
USER_STATS = _schema(
    "userStats",
    ("totalUsers", N),
    ("activeUsers", N),
    ("avgStaked", T),
)

# simulation
SCENARIO = _schema(
    "scenario",
    ("description", S),
    ("totalStaked", T),
    ("totalUsers", N),
    ("avgAPR", N),
    ("userGrowth", N),
)
USER_BEHAVIOR = _schema(
    "userBehavior",
    ("avgStake", T),
    ("avgStakingPeriod", N),
    ("retentionRate", N),
    ("userSatisfaction", N),
)
