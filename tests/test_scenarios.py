import asyncio

import pytest

from staking_reports.core.errors import SourceUnavailable
from staking_reports.domain.catalog import BundleSpec, simulation_definition
from staking_reports.domain.scenarios import SCENARIOS_BY_NAME, compute_result
from staking_reports.domain.schemas import SCENARIO
from staking_reports.engine.rules import RuleEvaluator
from staking_reports.engine.scenarios import ScenarioGenerator


def test_generation_is_deterministic(generated_at):
    gen = ScenarioGenerator()

    first = gen.generate("high-participation", generated_at=generated_at)
    second = gen.generate("high-participation")

    assert first.values == second.values
    assert first.values == {
        "description": "High participation scenario",
        "totalStaked": "1000000",
        "totalUsers": 10000,
        "avgAPR": 1200,
        "userGrowth": 20,
    }
    assert first.group == "scenarios"
    assert first.domain == "highParticipation"


def test_results_preserve_scenario_ordering():
    gen = ScenarioGenerator()

    high = compute_result(gen.generate("high-participation"))
    low = compute_result(gen.generate("low-participation"))

    assert high == 1
    assert low == 0.1
    assert high > low


def test_high_over_low_recommends_engagement():
    gen = ScenarioGenerator()
    view = {
        "results": {
            "highParticipation": compute_result(gen.generate("high-participation")),
            "lowParticipation": compute_result(gen.generate("low-participation")),
        },
        "userBehavior": {"retentionRate": 85},
    }

    definition = simulation_definition()

    assert RuleEvaluator().evaluate(view, definition.recommendation_rules) == ["Maintain engagement strategies"]


def test_unknown_scenario():
    with pytest.raises(KeyError):
        ScenarioGenerator().generate("boom")
    with pytest.raises(KeyError):
        ScenarioGenerator(["boom"])
    with pytest.raises(KeyError):
        simulation_definition(["boom"])


def test_generator_serves_only_selected_bundles():
    gen = ScenarioGenerator(["growth", "growth", "decline"])

    assert gen.scenario_names == ["growth", "decline"]
    assert gen.source_id == "growth,decline"

    raw = asyncio.run(gen.fetch_bundle(BundleSpec("decline", SCENARIO)))
    assert raw["totalStaked"] == SCENARIOS_BY_NAME["decline"].total_staked * 10**18

    with pytest.raises(SourceUnavailable):
        asyncio.run(gen.fetch_bundle(BundleSpec("highParticipation", SCENARIO)))


def test_simulation_definition_bundles():
    definition = simulation_definition(["low-participation"])

    assert [spec.key for spec in definition.bundles] == ["lowParticipation", "userBehavior"]
    assert definition.bundles[0].group == "scenarios"
    assert definition.bundles[1].group is None
