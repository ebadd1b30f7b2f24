import json
import logging
from types import SimpleNamespace

import pytest

from staking_reports.cli.main import main
from staking_reports.domain.catalog import COMPLIANCE
from staking_reports.sources.contract import ContractMetricSource

ADDRESS = "0x1111111111111111111111111111111111111111"


@pytest.fixture(autouse=True)
def restore_root_logging(monkeypatch):
    for name in (
        "RPC_URL",
        "STAKING_ADDRESS",
        "OUTPUT_ROOT",
        "TOKEN_DECIMALS",
        "CONCURRENT_FETCH",
        "REQUEST_TIMEOUT",
        "ABI_PATH",
    ):
        monkeypatch.delenv(f"STAKING_REPORTS_{name}", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _snapshot(tmp_path, bundles):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"stakingAddress": ADDRESS, "bundles": bundles}))
    return path


def test_report_from_snapshot(tmp_path, raw_bundles, capsys):
    raw_bundles["regulatoryRequirements"]["AML"] = False
    snap = _snapshot(tmp_path, raw_bundles)
    out_root = tmp_path / "out"

    code = main(["compliance", "--snapshot", str(snap), "--output-root", str(out_root)])

    assert code == 0
    written = list((out_root / "compliance").glob("staking-compliance-*.json"))
    assert len(written) == 1
    doc = json.loads(written[0].read_text(encoding="utf-8"))
    assert doc["stakingAddress"] == ADDRESS
    assert doc["recommendations"] == ["Implement AML procedures for staking protocol"]

    out = capsys.readouterr().out
    assert f"Report created: {written[0]}" in out
    assert "- Implement AML procedures for staking protocol" in out


def test_risk_summary_printed(tmp_path, raw_bundles, capsys):
    snap = _snapshot(tmp_path, raw_bundles)

    code = main(["risk-assessment", "--snapshot", str(snap), "--output-root", str(tmp_path / "out"), "--concurrent"])

    assert code == 0
    out = capsys.readouterr().out
    assert "Risk level: LOW (score 401210)" in out
    assert "Mitigation strategies: Regular audits, Insurance coverage" in out


def test_simulate(tmp_path, capsys):
    code = main(["simulate", "--output-root", str(tmp_path)])

    assert code == 0
    written = list((tmp_path / "simulation").glob("staking-simulation-*.json"))
    assert len(written) == 1
    assert "- Maintain engagement strategies" in capsys.readouterr().out


def test_simulate_subset_skips_engagement_rule(tmp_path):
    code = main(["simulate", "--scenario", "growth", "--output-root", str(tmp_path)])

    assert code == 0
    doc = json.loads(next((tmp_path / "simulation").glob("*.json")).read_text(encoding="utf-8"))
    assert list(doc["scenarios"]) == ["growth"]
    assert doc["recommendations"] == []


def test_list(tmp_path, capsys):
    main(["simulate", "--output-root", str(tmp_path)])
    capsys.readouterr()

    assert main(["list", "simulation", "--output-root", str(tmp_path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    assert lines[0].endswith(".json")


def test_missing_address_fails(tmp_path):
    assert main(["monitoring", "--output-root", str(tmp_path)]) == 1
    assert not (tmp_path / "monitoring").exists()


def test_incomplete_snapshot_fails(tmp_path, raw_bundles):
    del raw_bundles["userMetrics"]["retentionRate"]
    snap = _snapshot(tmp_path, raw_bundles)

    assert main(["monitoring", "--snapshot", str(snap), "--output-root", str(tmp_path / "out")]) == 1
    assert not (tmp_path / "out" / "monitoring").exists()


def test_config_file(tmp_path, raw_bundles):
    snap = _snapshot(tmp_path, raw_bundles)
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"output_root": str(tmp_path / "from-config")}))

    assert main(["--config", str(cfg), "report", "--snapshot", str(snap)]) == 0
    assert list((tmp_path / "from-config" / "reports").glob("staking-report-*.json"))


class RecordingProvider:
    def __init__(self):
        self.disconnects = 0

    async def disconnect(self):
        self.disconnects += 1


class StaticCall:
    def __init__(self, result):
        self.result = result

    async def call(self):
        return self.result


class StaticFunctions:
    def __init__(self, by_method):
        self._by_method = by_method

    def __getattr__(self, name):
        return lambda *args: StaticCall(self._by_method[name])


class StaticWeb3:
    def __init__(self, by_method, connected=True):
        self.provider = RecordingProvider()
        self.connected = connected
        self.eth = SimpleNamespace(
            contract=lambda address, abi: SimpleNamespace(functions=StaticFunctions(by_method))
        )

    async def is_connected(self):
        return self.connected


def _use_web3(monkeypatch, web3):
    monkeypatch.setattr(
        ContractMetricSource,
        "from_config",
        classmethod(lambda cls, config: cls(config.require_address(), web3=web3)),
    )


def test_live_report_closes_rpc_session(tmp_path, raw_bundles, monkeypatch):
    web3 = StaticWeb3({spec.method: raw_bundles[spec.key] for spec in COMPLIANCE.bundles})
    _use_web3(monkeypatch, web3)

    code = main(["compliance", "--address", ADDRESS, "--output-root", str(tmp_path)])

    assert code == 0
    assert list((tmp_path / "compliance").glob("staking-compliance-*.json"))
    assert web3.provider.disconnects == 1


def test_unreachable_node_still_closes_rpc_session(tmp_path, monkeypatch):
    web3 = StaticWeb3({}, connected=False)
    _use_web3(monkeypatch, web3)

    code = main(["compliance", "--address", ADDRESS, "--output-root", str(tmp_path)])

    assert code == 1
    assert web3.provider.disconnects == 1
