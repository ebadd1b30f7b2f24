import copy
from datetime import datetime, timezone

import pytest

WEI = 10**18

ADDRESS = "0x1111111111111111111111111111111111111111"

HEALTHY_BUNDLES = {
    "costBreakdown": {
        "developmentCost": 200_000 * WEI,
        "maintenanceCost": 50_000 * WEI,
        "operationalCost": 100_000 * WEI,
        "securityCost": 80_000 * WEI,
        "gasCost": 20_000 * WEI,
        "totalCost": 450_000 * WEI,
    },
    "efficiencyMetrics": {
        "costPerUser": 5 * 10**16,
        "costPerStake": 5 * 10**16,
        "roi": 140,
        "costEffectiveness": 85,
        "efficiencyScore": 90,
    },
    "costOptimization": {
        "optimizationOpportunities": "Batch reward claims",
        "potentialSavings": 10_000 * WEI,
        "implementationTime": 30,
        "riskLevel": "LOW",
    },
    "revenueAnalysis": {
        "totalRevenue": 900_000 * WEI,
        "stakingFees": 600_000 * WEI,
        "platformFees": 300_000 * WEI,
        "netProfit": 450_000 * WEI,
        "profitMargin": 50,
    },
    "complianceStatus": {
        "regulatoryCompliance": True,
        "legalCompliance": True,
        "financialCompliance": True,
        "technicalCompliance": True,
        "overallScore": 92,
    },
    "regulatoryRequirements": {
        "licensing": True,
        "KYC": True,
        "AML": True,
        "stakingRequirements": True,
        "investorProtection": True,
    },
    "securityStandards": {
        "codeAudits": True,
        "accessControl": True,
        "securityTesting": True,
        "incidentResponse": True,
        "backupSystems": True,
    },
    "stakingCompliance": {
        "stakingRequirements": True,
        "rewardDistribution": True,
        "userProtection": True,
        "lockupPeriods": True,
        "transparency": True,
    },
    "protocolStatus": {
        "totalStaked": 2_500_000 * WEI,
        "totalUsers": 4200,
        "totalRewards": 120_000 * WEI,
        "activePools": 6,
        "paused": False,
        "lastUpdate": 1_700_000_000,
    },
    "userMetrics": {
        "avgStake": 595 * WEI,
        "avgAPR": 1100,
        "userGrowth": 12,
        "retentionRate": 88,
        "totalActiveUsers": 3100,
    },
    "rewardMetrics": {
        "totalRewardsDistributed": 110_000 * WEI,
        "avgRewardPerUser": 26 * WEI,
        "rewardDistributionRate": 95,
        "totalRewardRecipients": 4100,
    },
    "performanceIndicators": {
        "efficiencyScore": 91,
        "processingTime": 1200,
        "throughput": 350,
        "uptime": 99,
        "errorRate": "0.5",
    },
    "performanceMetrics": {
        "responseTime": 1800,
        "transactionSpeed": 14,
        "throughput": 350,
        "uptime": 99,
        "errorRate": "0.8",
        "gasEfficiency": 87,
    },
    "efficiencyScores": {
        "stakingEfficiency": 82,
        "rewardDistribution": 90,
        "userEngagement": 76,
        "capitalUtilization": 71,
        "profitability": 64,
    },
    "userExperience": {
        "interfaceUsability": 85,
        "transactionEase": 88,
        "mobileCompatibility": 79,
        "loadingSpeed": 83,
        "customerSatisfaction": 88,
    },
    "scalability": {
        "userCapacity": 100_000,
        "transactionCapacity": 5000,
        "storageCapacity": 80,
        "networkCapacity": 75,
        "futureGrowth": 40,
    },
    "userDemographics": {
        "totalUsers": 4200,
        "activeUsers": 3100,
        "newUsers": 300,
        "returningUsers": 2800,
        "userDistribution": [1200, 1800, 1200],
    },
    "engagementMetrics": {
        "avgSessionTime": 420,
        "dailyActiveUsers": 900,
        "weeklyActiveUsers": 2100,
        "monthlyActiveUsers": 3100,
        "userRetention": 78,
        "engagementScore": 81,
    },
    "stakingPatterns": {
        "avgStakeAmount": 595 * WEI,
        "stakingFrequency": 3,
        "popularStakingPeriods": [30, 90, 180],
        "peakStakingHours": [14, 15, 20],
        "averageStakingPeriod": 75,
        "withdrawalRate": 12,
    },
    "userSegments": {
        "casualStakers": 900,
        "activeStakers": 1500,
        "longTermStakers": 1300,
        "shortTermStakers": 700,
        "highValueStakers": 120,
        "segmentDistribution": [900, 1500, 120],
    },
    "riskFactors": {
        "totalStaked": 400_000,
        "stakingAPR": 1100,
        "liquidityRatio": 80,
        "userRisk": 20,
        "contractRisk": 10,
    },
    "currentStrategy": {
        "apr": 1100,
        "stakingPeriod": 30,
        "rewardDistribution": 1,
        "lockupPeriod": 7,
    },
    "riskProfile": {
        "marketRisk": 20,
        "liquidityRisk": 15,
        "smartContractRisk": 10,
        "operationalRisk": 5,
    },
    "recommendation": {
        "action": "Increase APR for long lockups",
        "timing": 1_700_100_000,
        "expectedOutcome": "Higher long-term deposits",
    },
    "strategyTimeline": [
        {"timestamp": 1_699_000_000, "strategy": "Baseline", "performance": 70, "changes": "Initial pools"},
        {"timestamp": 1_699_500_000, "strategy": "Boosted", "performance": 78, "changes": "APR +2%"},
    ],
    "stats": {
        "totalStaked": 2_500_000 * WEI,
        "totalRewards": 120_000 * WEI,
        "totalUsers": 4200,
        "totalPools": 8,
        "avgAPR": 1100,
    },
    "poolInfo": {
        "totalPools": 8,
        "activePools": 6,
        "totalStaked": 2_500_000 * WEI,
    },
    "userStats": {
        "totalUsers": 4200,
        "activeUsers": 3100,
        "avgStaked": 595 * WEI,
    },
}

# The strategy report reads a differently shaped performanceMetrics view.
STRATEGY_PERFORMANCE = {
    "totalStaked": 2_500_000 * WEI,
    "totalRewards": 120_000 * WEI,
    "userGrowth": 12,
    "retentionRate": 88,
}


@pytest.fixture
def raw_bundles():
    return copy.deepcopy(HEALTHY_BUNDLES)


@pytest.fixture
def strategy_bundles():
    bundles = copy.deepcopy(HEALTHY_BUNDLES)
    bundles["performanceMetrics"] = dict(STRATEGY_PERFORMANCE)
    return bundles


@pytest.fixture
def generated_at():
    return datetime(2026, 10, 19, 12, 30, 45, 123000, tzinfo=timezone.utc)


@pytest.fixture
def address():
    return ADDRESS
