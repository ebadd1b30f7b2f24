from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from staking_reports.core.errors import NormalizationError
from staking_reports.core.report_types import MetricBundle, Report, RiskAssessment, RiskLevel
from staking_reports.domain.catalog import ReportDefinition
from staking_reports.engine.classifier import DEFAULT_PLAYBOOKS

_RISK_KEYS = ("overallRiskScore", "riskLevel", "mitigationStrategies")


class ReportAssembler:
    def assemble(
        self,
        definition: ReportDefinition,
        bundles: Dict[str, MetricBundle],
        generated_at: datetime,
        source_id: str,
        recommendations: List[str],
        alerts: Optional[List[str]] = None,
        risk: Optional[RiskAssessment] = None,
        derived: Optional[Dict[str, Any]] = None,
    ) -> Report:
        ordered = {spec.key: bundles[spec.key] for spec in definition.bundles if spec.key in bundles}

        recs = list(recommendations)
        if risk is not None:
            recs.extend(risk.recommendations)

        if definition.alert_rules is not None and alerts is None:
            alerts = []

        return Report(
            report_type=definition.report_type,
            category=definition.category.value,
            generated_at=generated_at,
            source_key=definition.source_key,
            source_id=str(source_id),
            bundles=ordered,
            recommendations=recs,
            alerts=list(alerts) if alerts is not None else None,
            risk=risk,
            derived=dict(derived or {}),
        )


def parse_report(document: Union[str, bytes, Dict[str, Any]], definition: ReportDefinition) -> Report:
    """Rebuild a Report from its persisted JSON form."""
    doc = json.loads(document) if isinstance(document, (str, bytes)) else dict(document)

    try:
        generated_at = datetime.fromisoformat(doc["timestamp"])
        source_id = str(doc[definition.source_key.value])
    except (KeyError, ValueError) as exc:
        raise NormalizationError(f"Malformed {definition.report_type} report header: {exc}") from exc

    bundles: Dict[str, MetricBundle] = {}
    consumed = {"timestamp", definition.source_key.value, "alerts", "recommendations"}
    for spec in definition.bundles:
        container = doc.get(spec.group, {}) if spec.group else doc
        if spec.key not in container:
            continue
        payload = container[spec.key]
        consumed.add(spec.group or spec.key)
        bundles[spec.key] = MetricBundle(
            domain=spec.key,
            source=source_id,
            generated_at=generated_at,
            values={} if spec.sequence else dict(payload),
            entries=[dict(e) for e in payload] if spec.sequence else [],
            sequence=spec.sequence,
            group=spec.group,
        )

    risk: Optional[RiskAssessment] = None
    recommendations = list(doc.get("recommendations", []))
    if definition.risk_bundle and "riskLevel" in doc:
        level = RiskLevel(doc["riskLevel"])
        consumed.update(_RISK_KEYS)
        risk_recs = _trailing_level_recommendations(recommendations, level)
        risk = RiskAssessment(
            score=int(doc["overallRiskScore"]),
            level=level,
            mitigation_strategies=list(doc.get("mitigationStrategies", [])),
            recommendations=risk_recs,
        )

    derived = {k: v for k, v in doc.items() if k not in consumed}

    return Report(
        report_type=definition.report_type,
        category=definition.category.value,
        generated_at=generated_at,
        source_key=definition.source_key,
        source_id=source_id,
        bundles=bundles,
        recommendations=recommendations,
        alerts=list(doc["alerts"]) if "alerts" in doc else None,
        risk=risk,
        derived=derived,
    )


def _trailing_level_recommendations(recommendations: List[str], level: RiskLevel) -> List[str]:
    expected = DEFAULT_PLAYBOOKS[level].recommendations
    if expected and recommendations[-len(expected):] == expected:
        return list(expected)
    return []
