import asyncio
import json

import pytest

from staking_reports.core.errors import WriteFailure
from staking_reports.core.report_engine import ReportEngine
from staking_reports.domain.catalog import COST_ANALYSIS, MONITORING
from staking_reports.engine.assembler import parse_report
from staking_reports.sources.snapshot import SnapshotMetricSource
from staking_reports.storage.sink import ReportPaths, ReportSink, list_reports


def _report(definition, raw_bundles, generated_at):
    source = SnapshotMetricSource(raw_bundles, source_id="0x1111111111111111111111111111111111111111")
    return asyncio.run(ReportEngine().build(definition, source, generated_at=generated_at))


def test_filename_uses_category_type_and_millis(raw_bundles, generated_at, tmp_path):
    report = _report(COST_ANALYSIS, raw_bundles, generated_at)

    path = ReportSink(tmp_path).write(report)

    assert path == tmp_path / "cost" / f"staking-cost-analysis-{report.generation_millis}.json"
    assert report.generation_millis == 1_792_413_045_123
    assert path.read_text(encoding="utf-8").endswith("\n")


def test_written_file_parses_back(raw_bundles, generated_at, tmp_path):
    report = _report(MONITORING, raw_bundles, generated_at)

    path = ReportSink(tmp_path).write(report)
    doc = json.loads(path.read_text(encoding="utf-8"))

    assert doc == report.to_document()
    assert parse_report(path.read_text(encoding="utf-8"), MONITORING) == report


def test_refuses_to_overwrite(raw_bundles, generated_at, tmp_path):
    report = _report(COST_ANALYSIS, raw_bundles, generated_at)
    sink = ReportSink(tmp_path)
    path = sink.write(report)
    before = path.read_text(encoding="utf-8")

    with pytest.raises(WriteFailure):
        sink.write(report)

    assert path.read_text(encoding="utf-8") == before
    assert not list(path.parent.glob("*.tmp"))


def test_unwritable_root(raw_bundles, generated_at, tmp_path):
    blocker = tmp_path / "root"
    blocker.write_text("not a directory")
    report = _report(COST_ANALYSIS, raw_bundles, generated_at)

    with pytest.raises(WriteFailure):
        ReportSink(blocker).write(report)


def test_list_reports(raw_bundles, generated_at, tmp_path):
    paths = ReportPaths(root=tmp_path)
    assert list_reports(paths, "cost") == []

    report = _report(COST_ANALYSIS, raw_bundles, generated_at)
    written = ReportSink(tmp_path).write(report)

    assert list_reports(paths, "cost") == [written]
