from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from staking_reports.core.errors import SourceUnavailable
from staking_reports.core.report_types import MetricBundle, SourceKey, utc_now_millis
from staking_reports.domain.catalog import BundleSpec
from staking_reports.domain.scenarios import (
    SCENARIOS,
    SCENARIOS_BY_NAME,
    USER_BEHAVIOR_KEY,
    user_behavior_raw,
)
from staking_reports.domain.schemas import SCENARIO
from staking_reports.engine.normalizer import DEFAULT_TOKEN_DECIMALS, SchemaNormalizer

LOGGER = logging.getLogger(__name__)


class ScenarioGenerator:
    """
    Synthetic metric source for what-if staking projections.

    Values are fixed per scenario; nothing is read from a live contract.
    """
    source_key = SourceKey.SCENARIO

    def __init__(
        self,
        scenario_names: Optional[Sequence[str]] = None,
        token_decimals: int = DEFAULT_TOKEN_DECIMALS,
    ):
        names = list(scenario_names) if scenario_names else [s.name for s in SCENARIOS]
        unknown = [n for n in names if n not in SCENARIOS_BY_NAME]
        if unknown:
            raise KeyError(f"Unknown scenario(s): {', '.join(unknown)}")
        self.scenario_names = list(dict.fromkeys(names))
        self.token_decimals = token_decimals
        self._by_key = {SCENARIOS_BY_NAME[n].key: SCENARIOS_BY_NAME[n] for n in self.scenario_names}

    @property
    def source_id(self) -> str:
        return ",".join(self.scenario_names)

    def raw(self, key: str) -> Dict[str, Any]:
        if key == USER_BEHAVIOR_KEY:
            return user_behavior_raw(self.token_decimals)
        try:
            return self._by_key[key].raw_fields(self.token_decimals)
        except KeyError:
            raise SourceUnavailable(f"Scenario generator has no bundle {key!r}") from None

    async def fetch_bundle(self, spec: BundleSpec) -> Dict[str, Any]:
        LOGGER.debug("Generating synthetic bundle %s", spec.key)
        return self.raw(spec.key)

    def generate(self, scenario_name: str, generated_at: Optional[datetime] = None) -> MetricBundle:
        try:
            scenario = SCENARIOS_BY_NAME[scenario_name]
        except KeyError:
            raise KeyError(f"Unknown scenario: {scenario_name}") from None

        normalizer = SchemaNormalizer(token_decimals=self.token_decimals)
        return normalizer.normalize(
            scenario.raw_fields(self.token_decimals),
            SCENARIO,
            source=scenario.name,
            generated_at=generated_at or utc_now_millis(),
            domain=scenario.key,
            group="scenarios",
        )
