from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from staking_reports.core.report_types import Comparator, MetricBundle, Rule, SourceKey
from staking_reports.domain import schemas as s
from staking_reports.domain.domains import ReportCategory
from staking_reports.domain.scenarios import (
    SCENARIOS,
    SCENARIOS_BY_NAME,
    USER_BEHAVIOR_KEY,
    compute_result,
)


REPORT_PREFIX = "staking"


@dataclass(frozen=True)
class BundleSpec:
    """
    How one domain bundle is obtained from a metric source.

    `method` names a view function returning every schema field at once.
    `field_methods` instead maps each field to its own scalar getter.
    `sequence` marks a method returning a list of records shaped by `schema`.
    """
    key: str
    schema: s.DomainSchema
    method: Optional[str] = None
    args: Tuple[Any, ...] = ()
    arg_types: Tuple[str, ...] = ()
    field_methods: Dict[str, str] = field(default_factory=dict)
    sequence: bool = False
    group: Optional[str] = None


@dataclass(frozen=True)
class ReportDefinition:
    report_type: str
    category: ReportCategory
    title: str
    bundles: Tuple[BundleSpec, ...]
    recommendation_rules: Tuple[Rule, ...] = ()
    alert_rules: Optional[Tuple[Rule, ...]] = None
    risk_bundle: Optional[str] = None
    source_key: SourceKey = SourceKey.STAKING_ADDRESS
    derive: Optional[Callable[[Dict[str, MetricBundle]], Dict[str, Any]]] = None

    @property
    def file_prefix(self) -> str:
        return f"{REPORT_PREFIX}-{self.report_type}"


def _gt(path: str, threshold: Any, message: str) -> Rule:
    return Rule(path=path, comparator=Comparator.GT, threshold=threshold, message=message)


def _lt(path: str, threshold: Any, message: str) -> Rule:
    return Rule(path=path, comparator=Comparator.LT, threshold=threshold, message=message)


def _is(path: str, expected: bool, message: str) -> Rule:
    return Rule(path=path, comparator=Comparator.IS, threshold=expected, message=message)


def _exceeds(path: str, other_path: str, message: str) -> Rule:
    return Rule(path=path, comparator=Comparator.GT, other_path=other_path, message=message)


# Token thresholds are whole-token amounts compared after normalization.
COST_RULES: Tuple[Rule, ...] = (
    _gt("costBreakdown.totalCost", 1_000_000, "Review and optimize operational costs"),
    _gt("efficiencyMetrics.costPerStake", "0.1", "Reduce staking costs for better efficiency"),
    _lt("revenueAnalysis.profitMargin", 30, "Improve profit margins through cost optimization"),
    _gt("costOptimization.potentialSavings", 50_000, "Implement cost optimization measures"),
)

COMPLIANCE_RULES: Tuple[Rule, ...] = (
    _lt("complianceStatus.overallScore", 80, "Improve compliance with staking regulations"),
    _is("regulatoryRequirements.AML", False, "Implement AML procedures for staking protocol"),
    _is("securityStandards.codeAudits", False, "Conduct regular code audits for staking protocol"),
    _is("stakingCompliance.stakingRequirements", False, "Ensure compliance with staking requirements"),
)

MONITORING_ALERTS: Tuple[Rule, ...] = (
    _lt("protocolStatus.totalStaked", 1_000_000, "Low total staked amount detected"),
    _gt("performanceIndicators.errorRate", 2, "High error rate detected"),
    _lt("userMetrics.retentionRate", 70, "Low user retention rate detected"),
)

MONITORING_RULES: Tuple[Rule, ...] = (
    _lt("protocolStatus.totalStaked", 1_000_000, "Implement user acquisition strategies"),
    _gt("performanceIndicators.errorRate", 1, "Investigate and fix performance issues"),
    _lt("userMetrics.retentionRate", 80, "Implement retention improvement measures"),
)

PERFORMANCE_RULES: Tuple[Rule, ...] = (
    _gt("performanceMetrics.responseTime", 2500, "Optimize response time for better user experience"),
    _gt("performanceMetrics.errorRate", "1.5", "Reduce error rate through system optimization"),
    _lt("efficiencyScores.stakingEfficiency", 70, "Improve staking protocol operational efficiency"),
    _lt("userExperience.customerSatisfaction", 80, "Enhance user experience and satisfaction"),
)

USER_ANALYTICS_RULES: Tuple[Rule, ...] = (
    _lt("engagementMetrics.userRetention", 70, "Low user retention - implement retention strategies"),
    _gt("stakingPatterns.withdrawalRate", 30, "High withdrawal rate - improve user retention"),
    _lt("userSegments.highValueStakers", 50, "Low high-value stakers - focus on premium user acquisition"),
    _exceeds(
        "userSegments.casualStakers",
        "userSegments.activeStakers",
        "More casual stakers than active stakers - consider staker engagement",
    ),
)

SIMULATION_RULES: Tuple[Rule, ...] = (
    _exceeds("results.highParticipation", "results.lowParticipation", "Maintain engagement strategies"),
    _lt(f"{USER_BEHAVIOR_KEY}.retentionRate", 80, "Improve user retention programs"),
)


COST_ANALYSIS = ReportDefinition(
    report_type="cost-analysis",
    category=ReportCategory.COST,
    title="Cost analysis",
    bundles=(
        BundleSpec("costBreakdown", s.COST_BREAKDOWN, method="getCostBreakdown"),
        BundleSpec("efficiencyMetrics", s.EFFICIENCY_METRICS, method="getEfficiencyMetrics"),
        BundleSpec("costOptimization", s.COST_OPTIMIZATION, method="getCostOptimization"),
        BundleSpec("revenueAnalysis", s.REVENUE_ANALYSIS, method="getRevenueAnalysis"),
    ),
    recommendation_rules=COST_RULES,
)

COMPLIANCE = ReportDefinition(
    report_type="compliance",
    category=ReportCategory.COMPLIANCE,
    title="Compliance check",
    bundles=(
        BundleSpec("complianceStatus", s.COMPLIANCE_STATUS, method="getComplianceStatus"),
        BundleSpec("regulatoryRequirements", s.REGULATORY_REQUIREMENTS, method="getRegulatoryRequirements"),
        BundleSpec("securityStandards", s.SECURITY_STANDARDS, method="getSecurityStandards"),
        BundleSpec("stakingCompliance", s.STAKING_COMPLIANCE, method="getStakingCompliance"),
    ),
    recommendation_rules=COMPLIANCE_RULES,
)

MONITORING = ReportDefinition(
    report_type="monitoring",
    category=ReportCategory.MONITORING,
    title="Protocol monitoring",
    bundles=(
        BundleSpec("protocolStatus", s.PROTOCOL_STATUS, method="getProtocolStatus"),
        BundleSpec("userMetrics", s.USER_METRICS, method="getUserMetrics"),
        BundleSpec("rewardMetrics", s.REWARD_METRICS, method="getRewardMetrics"),
        BundleSpec("performanceIndicators", s.PERFORMANCE_INDICATORS, method="getPerformanceIndicators"),
    ),
    recommendation_rules=MONITORING_RULES,
    alert_rules=MONITORING_ALERTS,
)

PERFORMANCE = ReportDefinition(
    report_type="performance",
    category=ReportCategory.PERFORMANCE,
    title="Performance analysis",
    bundles=(
        BundleSpec("performanceMetrics", s.PERFORMANCE_METRICS, method="getPerformanceMetrics"),
        BundleSpec("efficiencyScores", s.EFFICIENCY_SCORES, method="getEfficiencyScores"),
        BundleSpec("userExperience", s.USER_EXPERIENCE, method="getUserExperience"),
        BundleSpec("scalability", s.SCALABILITY, method="getScalability"),
    ),
    recommendation_rules=PERFORMANCE_RULES,
)

USER_ANALYTICS = ReportDefinition(
    report_type="user-analytics",
    category=ReportCategory.ANALYTICS,
    title="User analytics",
    bundles=(
        BundleSpec("userDemographics", s.USER_DEMOGRAPHICS, method="getUserDemographics"),
        BundleSpec("engagementMetrics", s.ENGAGEMENT_METRICS, method="getEngagementMetrics"),
        BundleSpec("stakingPatterns", s.STAKING_PATTERNS, method="getStakingPatterns"),
        BundleSpec("userSegments", s.USER_SEGMENTS, method="getUserSegments"),
    ),
    recommendation_rules=USER_ANALYTICS_RULES,
)

RISK_ASSESSMENT = ReportDefinition(
    report_type="risk-assessment",
    category=ReportCategory.RISK,
    title="Risk assessment",
    bundles=(
        BundleSpec(
            "riskFactors",
            s.RISK_FACTORS,
            field_methods={
                "totalStaked": "getTotalStaked",
                "stakingAPR": "getCurrentAPR",
                "liquidityRatio": "getLiquidityRatio",
                "userRisk": "getUserRiskProfile",
                "contractRisk": "getContractRisk",
            },
        ),
    ),
    risk_bundle="riskFactors",
)

STRATEGY_TIMELINE_LENGTH = 5

STRATEGY = ReportDefinition(
    report_type="strategy",
    category=ReportCategory.STRATEGY,
    title="Staking strategy",
    bundles=(
        BundleSpec("currentStrategy", s.CURRENT_STRATEGY, method="getCurrentStrategy"),
        BundleSpec("performanceMetrics", s.STRATEGY_PERFORMANCE, method="getPerformanceMetrics"),
        BundleSpec("riskProfile", s.RISK_PROFILE, method="getRiskProfile"),
        BundleSpec("recommendation", s.STRATEGY_RECOMMENDATION, method="getRecommendation"),
        BundleSpec(
            "strategyTimeline",
            s.STRATEGY_TIMELINE_ENTRY,
            method="getStrategyTimeline",
            args=(STRATEGY_TIMELINE_LENGTH,),
            arg_types=("uint256",),
            sequence=True,
        ),
    ),
)

SUMMARY = ReportDefinition(
    report_type="report",
    category=ReportCategory.SUMMARY,
    title="Protocol summary",
    bundles=(
        BundleSpec("stats", s.STAKING_STATS, method="getStakingStats", group="report"),
        BundleSpec("poolInfo", s.POOL_INFO, method="getPoolInfo", group="report"),
        BundleSpec("userStats", s.USER_STATS, method="getUserStats", group="report"),
    ),
)


LIVE_REPORTS: Dict[str, ReportDefinition] = {
    d.report_type: d
    for d in (COST_ANALYSIS, COMPLIANCE, MONITORING, PERFORMANCE, USER_ANALYTICS, RISK_ASSESSMENT, STRATEGY, SUMMARY)
}


def _scenario_results(bundles: Dict[str, MetricBundle]) -> Dict[str, Any]:
    results = {
        key: compute_result(bundle)
        for key, bundle in bundles.items()
        if bundle.group == "scenarios"
    }
    return {"results": results}


def simulation_definition(scenario_names: Optional[Sequence[str]] = None) -> ReportDefinition:
    names = list(scenario_names) if scenario_names else [sc.name for sc in SCENARIOS]
    unknown = [n for n in names if n not in SCENARIOS_BY_NAME]
    if unknown:
        raise KeyError(f"Unknown scenario(s): {', '.join(unknown)}")

    scenario_bundles = tuple(
        BundleSpec(SCENARIOS_BY_NAME[n].key, s.SCENARIO, group="scenarios")
        for n in dict.fromkeys(names)
    )

    return ReportDefinition(
        report_type="simulation",
        category=ReportCategory.SIMULATION,
        title="Staking simulation",
        bundles=scenario_bundles + (BundleSpec(USER_BEHAVIOR_KEY, s.USER_BEHAVIOR),),
        recommendation_rules=SIMULATION_RULES,
        source_key=SourceKey.SCENARIO,
        derive=_scenario_results,
    )


def get_definition(report_type: str) -> ReportDefinition:
    if report_type == "simulation":
        return simulation_definition()
    try:
        return LIVE_REPORTS[report_type]
    except KeyError:
        raise KeyError(f"Unknown report type: {report_type}") from None
