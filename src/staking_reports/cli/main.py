from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from staking_reports.core.config import ReportingConfig, load_config
from staking_reports.core.errors import ReportingError
from staking_reports.core.logging_config import configure_logging
from staking_reports.core.report_engine import ReportEngine
from staking_reports.core.report_types import Report
from staking_reports.domain.catalog import LIVE_REPORTS, ReportDefinition, simulation_definition
from staking_reports.domain.domains import ReportCategory
from staking_reports.domain.scenarios import SCENARIOS
from staking_reports.engine.normalizer import SchemaNormalizer
from staking_reports.engine.scenarios import ScenarioGenerator
from staking_reports.sources.contract import ContractMetricSource
from staking_reports.sources.snapshot import SnapshotMetricSource
from staking_reports.storage.sink import ReportPaths, ReportSink, list_reports

LOGGER = logging.getLogger("staking_reports.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staking-reports",
        description="Threshold-driven reports over staking protocol metrics.",
    )
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-format", choices=("plain", "json"), default="plain")

    sub = parser.add_subparsers(dest="command", required=True)

    for report_type, definition in LIVE_REPORTS.items():
        p = sub.add_parser(report_type, help=f"{definition.title} report")
        p.add_argument("--address", help="Staking contract address")
        p.add_argument("--rpc-url", help="JSON-RPC endpoint")
        p.add_argument("--snapshot", type=Path, help="Read raw bundles from a JSON snapshot instead of the chain")
        p.add_argument("--output-root", type=Path, help="Directory holding the category folders")
        p.add_argument("--concurrent", action="store_true", default=None, help="Fetch bundles concurrently")

    sim = sub.add_parser("simulate", help="What-if staking scenario simulation")
    sim.add_argument(
        "--scenario",
        action="append",
        choices=[s.name for s in SCENARIOS],
        help="Scenario to include (repeatable, default: all)",
    )
    sim.add_argument("--output-root", type=Path)

    ls = sub.add_parser("list", help="List stored reports of one category")
    ls.add_argument("category", choices=[c.value for c in ReportCategory])
    ls.add_argument("--output-root", type=Path)

    return parser


def _resolve_config(args: argparse.Namespace) -> ReportingConfig:
    overrides = {
        "staking_address": getattr(args, "address", None),
        "rpc_url": getattr(args, "rpc_url", None),
        "output_root": getattr(args, "output_root", None),
        "concurrent_fetch": getattr(args, "concurrent", None),
    }
    return load_config(args.config, overrides=overrides)


def _engine(config: ReportingConfig) -> ReportEngine:
    return ReportEngine(
        normalizer=SchemaNormalizer(token_decimals=config.token_decimals),
        sink=ReportSink(config.output_root),
        concurrent_fetch=config.concurrent_fetch,
    )


async def _run_report(
    definition: ReportDefinition,
    config: ReportingConfig,
    snapshot: Optional[Path],
) -> Tuple[Report, Optional[Path]]:
    if snapshot is not None:
        source = SnapshotMetricSource.from_file(snapshot, source_id=config.staking_address)
        return await _engine(config).run(definition, source)

    async with ContractMetricSource.from_config(config) as contract_source:
        await contract_source.ensure_connection()
        return await _engine(config).run(definition, contract_source)


async def _run_simulation(
    scenario_names: Optional[Sequence[str]],
    config: ReportingConfig,
) -> Tuple[Report, Optional[Path]]:
    generator = ScenarioGenerator(scenario_names, token_decimals=config.token_decimals)
    definition = simulation_definition(generator.scenario_names)
    return await _engine(config).run(definition, generator)


def _print_summary(title: str, report: Report, path: Optional[Path]) -> None:
    out = sys.stdout
    out.write(f"{title} completed for {report.source_id}\n")
    if path is not None:
        out.write(f"Report created: {path}\n")
    if report.risk is not None:
        out.write(f"Risk level: {report.risk.level.value} (score {report.risk.score})\n")
        out.write("Mitigation strategies: " + ", ".join(report.risk.mitigation_strategies) + "\n")
    if report.alerts is not None:
        out.write(f"Alerts: {len(report.alerts)}\n")
        for alert in report.alerts:
            out.write(f"  ! {alert}\n")
    out.write(f"Recommendations: {len(report.recommendations)}\n")
    for rec in report.recommendations:
        out.write(f"  - {rec}\n")


def _list(category: str, config: ReportingConfig) -> List[Path]:
    files = list_reports(ReportPaths(root=config.output_root), category)
    for f in files:
        sys.stdout.write(f"{f}\n")
    return files


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        config = _resolve_config(args)

        if args.command == "list":
            _list(args.category, config)
            return 0

        if args.command == "simulate":
            report, path = asyncio.run(_run_simulation(args.scenario, config))
            _print_summary("Staking simulation", report, path)
            return 0

        definition = LIVE_REPORTS[args.command]
        report, path = asyncio.run(_run_report(definition, config, args.snapshot))
        _print_summary(definition.title, report, path)
        return 0

    except ReportingError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
