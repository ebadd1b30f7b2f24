from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from staking_reports.core.errors import SourceUnavailable
from staking_reports.core.report_types import SourceKey
from staking_reports.domain.catalog import BundleSpec

LOGGER = logging.getLogger(__name__)


class SnapshotMetricSource:
    """Serves raw metric bundles captured earlier, keyed by bundle name."""
    source_key = SourceKey.STAKING_ADDRESS

    def __init__(self, bundles: Mapping[str, Any], source_id: str = "snapshot"):
        self._bundles: Dict[str, Any] = dict(bundles)
        self._source_id = source_id

    @classmethod
    def from_file(cls, path: Path, source_id: Optional[str] = None) -> "SnapshotMetricSource":
        """
        Load a snapshot file. Either a plain mapping of bundle name to raw
        fields, or {"stakingAddress": ..., "bundles": {...}}.
        """
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"Cannot read snapshot {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise SourceUnavailable(f"Snapshot {path} must contain a JSON object")

        if isinstance(raw.get("bundles"), dict):
            bundles = raw["bundles"]
            source_id = source_id or str(raw.get(SourceKey.STAKING_ADDRESS.value) or "")
        else:
            bundles = raw

        return cls(bundles, source_id=source_id or Path(path).stem)

    @property
    def source_id(self) -> str:
        return self._source_id

    async def fetch_bundle(self, spec: BundleSpec) -> Any:
        if spec.key not in self._bundles:
            raise SourceUnavailable(f"Snapshot has no {spec.key} bundle")
        LOGGER.debug("Serving %s from snapshot", spec.key)
        return copy.deepcopy(self._bundles[spec.key])
