from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class SourceKey(str, Enum):
    STAKING_ADDRESS = "stakingAddress"
    SCENARIO = "scenario"


def utc_now_millis() -> datetime:
    """Current UTC time truncated to millisecond resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_millis(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


class Comparator(str, Enum):
    GT = ">"
    LT = "<"
    EQ = "=="
    IS = "is"


@dataclass(frozen=True)
class Rule:
    """
    Threshold predicate over one dotted field path.

    Either `threshold` or `other_path` is set; the latter compares two fields
    of the same report (e.g. casual vs active stakers).
    """
    path: str
    comparator: Comparator
    message: str
    threshold: Any = None
    other_path: Optional[str] = None


@dataclass(frozen=True)
class MetricBundle:
    """
    Normalized snapshot of one domain's fields.

    Sequence bundles (e.g. a strategy timeline) carry their records in
    `entries` instead of `values`. A bundle with a `group` is nested under
    that key in the persisted report.
    """
    domain: str
    source: str
    generated_at: datetime
    values: Dict[str, Any] = field(default_factory=dict)
    entries: List[Dict[str, Any]] = field(default_factory=list)
    sequence: bool = False
    group: Optional[str] = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def payload(self) -> Any:
        if self.sequence:
            return [dict(e) for e in self.entries]
        return dict(self.values)


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    level: RiskLevel
    mitigation_strategies: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Report:
    report_type: str
    category: str
    generated_at: datetime
    source_key: SourceKey
    source_id: str
    bundles: Dict[str, MetricBundle]

    recommendations: List[str] = field(default_factory=list)
    # None for report types without an alert stage, so the key is omitted on disk.
    alerts: Optional[List[str]] = None
    risk: Optional[RiskAssessment] = None
    derived: Dict[str, Any] = field(default_factory=dict)

    @property
    def timestamp(self) -> str:
        return self.generated_at.isoformat(timespec="milliseconds")

    @property
    def generation_millis(self) -> int:
        return to_millis(self.generated_at)

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "timestamp": self.timestamp,
            self.source_key.value: self.source_id,
        }

        groups: Dict[str, Dict[str, Any]] = {}
        for key, bundle in self.bundles.items():
            if bundle.group:
                groups.setdefault(bundle.group, {})[key] = bundle.payload()
        doc.update(groups)

        for key, value in self.derived.items():
            doc[key] = value

        for key, bundle in self.bundles.items():
            if not bundle.group:
                doc[key] = bundle.payload()

        if self.risk is not None:
            doc["overallRiskScore"] = self.risk.score
            doc["riskLevel"] = self.risk.level.value
            doc["mitigationStrategies"] = list(self.risk.mitigation_strategies)

        if self.alerts is not None:
            doc["alerts"] = list(self.alerts)

        doc["recommendations"] = list(self.recommendations)
        return doc
