from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from staking_reports.core.report_types import (
    MetricBundle,
    Report,
    Rule,
    SourceKey,
    utc_now_millis,
)
from staking_reports.domain.catalog import BundleSpec, ReportDefinition
from staking_reports.engine.assembler import ReportAssembler
from staking_reports.engine.classifier import RiskClassifier
from staking_reports.engine.normalizer import SchemaNormalizer
from staking_reports.engine.rules import RuleEvaluator

LOGGER = logging.getLogger(__name__)


class MetricSource(Protocol):
    source_key: SourceKey

    @property
    def source_id(self) -> str:
        raise NotImplementedError

    async def fetch_bundle(self, spec: BundleSpec) -> Any:
        raise NotImplementedError


class ReportSinkComponent(Protocol):
    def write(self, report: Report) -> Path:
        raise NotImplementedError


@dataclass
class ReportEngine:
    normalizer: SchemaNormalizer = field(default_factory=SchemaNormalizer)
    evaluator: RuleEvaluator = field(default_factory=RuleEvaluator)
    classifier: RiskClassifier = field(default_factory=RiskClassifier)
    assembler: ReportAssembler = field(default_factory=ReportAssembler)
    sink: Optional[ReportSinkComponent] = None
    concurrent_fetch: bool = False

    async def _fetch_all(self, source: MetricSource, specs: Sequence[BundleSpec]) -> List[Any]:
        if self.concurrent_fetch:
            return list(await asyncio.gather(*(source.fetch_bundle(spec) for spec in specs)))
        raw_bundles: List[Any] = []
        for spec in specs:
            raw_bundles.append(await source.fetch_bundle(spec))
        return raw_bundles

    def _normalize_all(
        self,
        specs: Sequence[BundleSpec],
        raw_bundles: Sequence[Any],
        source_id: str,
        generated_at: datetime,
    ) -> Dict[str, MetricBundle]:
        bundles: Dict[str, MetricBundle] = {}
        for spec, raw in zip(specs, raw_bundles):
            bundles[spec.key] = self.normalizer.normalize(
                raw,
                spec.schema,
                source=source_id,
                generated_at=generated_at,
                domain=spec.key,
                sequence=spec.sequence,
                group=spec.group,
            )
        return bundles

    @staticmethod
    def _view(bundles: Dict[str, MetricBundle], derived: Dict[str, Any]) -> Dict[str, Any]:
        view: Dict[str, Any] = {}
        for key, bundle in bundles.items():
            if bundle.group:
                view.setdefault(bundle.group, {})[key] = bundle.payload()
            else:
                view[key] = bundle.payload()
        view.update(derived)
        return view

    def _evaluate(self, view: Dict[str, Any], rules: Optional[Tuple[Rule, ...]]) -> Optional[List[str]]:
        if rules is None:
            return None
        return self.evaluator.evaluate(view, rules)

    async def build(
        self,
        definition: ReportDefinition,
        source: MetricSource,
        generated_at: Optional[datetime] = None,
    ) -> Report:
        generated_at = generated_at or utc_now_millis()
        source_id = source.source_id
        specs = definition.bundles

        LOGGER.info("Building %s report from %s", definition.report_type, source_id)
        raw_bundles = await self._fetch_all(source, specs)
        bundles = self._normalize_all(specs, raw_bundles, source_id, generated_at)

        derived = definition.derive(bundles) if definition.derive else {}
        view = self._view(bundles, derived)

        recommendations = self.evaluator.evaluate(view, definition.recommendation_rules)
        alerts = self._evaluate(view, definition.alert_rules)

        risk = None
        if definition.risk_bundle:
            risk = self.classifier.classify(bundles[definition.risk_bundle].values)
            LOGGER.info("Risk score %d classified as %s", risk.score, risk.level.value)

        return self.assembler.assemble(
            definition,
            bundles,
            generated_at=generated_at,
            source_id=source_id,
            recommendations=recommendations,
            alerts=alerts,
            risk=risk,
            derived=derived,
        )

    async def run(
        self,
        definition: ReportDefinition,
        source: MetricSource,
        generated_at: Optional[datetime] = None,
    ) -> Tuple[Report, Optional[Path]]:
        report = await self.build(definition, source, generated_at=generated_at)
        path = self.sink.write(report) if self.sink is not None else None
        return report, path
