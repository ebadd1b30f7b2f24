from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List

from staking_reports.core.errors import WriteFailure
from staking_reports.core.report_types import Report
from staking_reports.domain.catalog import REPORT_PREFIX

LOGGER = logging.getLogger(__name__)


def _serialize(obj: Any) -> str:
    try:
        return json.dumps(obj, ensure_ascii=False, indent=2) + "\n"
    except (TypeError, ValueError) as exc:
        raise WriteFailure(f"Report is not JSON-serializable: {exc}") from exc


def _write_json_exclusive(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        raise FileExistsError(str(path))
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    try:
        tmp.replace(path)
    finally:
        if tmp.exists():
            tmp.unlink()


@dataclass(frozen=True)
class ReportPaths:
    root: Path

    def category_dir(self, category: str) -> Path:
        return self.root / category

    def report_path(self, report: Report) -> Path:
        name = f"{REPORT_PREFIX}-{report.report_type}-{report.generation_millis}.json"
        return self.category_dir(report.category) / name


class ReportSink:
    def __init__(self, root: Path):
        self.paths = ReportPaths(root=Path(root))

    def write(self, report: Report) -> Path:
        text = _serialize(report.to_document())
        path = self.paths.report_path(report)
        try:
            _write_json_exclusive(path, text)
        except FileExistsError as exc:
            raise WriteFailure(f"Refusing to overwrite existing report {path}") from exc
        except OSError as exc:
            raise WriteFailure(f"Cannot write report {path}: {exc}") from exc
        LOGGER.info("Report written to %s", path)
        return path


def list_reports(paths: ReportPaths, category: str) -> List[Path]:
    folder = paths.category_dir(category)
    if not folder.exists():
        return []
    files = [p for p in folder.iterdir() if p.is_file() and p.suffix == ".json"]
    files.sort()
    return files
