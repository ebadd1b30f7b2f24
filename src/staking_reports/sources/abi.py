"""ABI fragments for the read-only views the reports consume."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterable, List

from staking_reports.core.errors import ConfigurationError, SourceUnavailable
from staking_reports.domain.catalog import BundleSpec, ReportDefinition
from staking_reports.domain.schemas import DomainSchema


def _params(schema: DomainSchema) -> List[Dict[str, Any]]:
    return [{"name": f.name, "type": f.solidity_type} for f in schema.fields]


def view_function(name: str, inputs: List[Dict[str, Any]], outputs: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": outputs,
    }


def bundle_functions(spec: BundleSpec) -> List[Dict[str, Any]]:
    if spec.field_methods:
        by_name = {f.name: f for f in spec.schema.fields}
        return [
            view_function(method, [], [{"name": "", "type": by_name[field].solidity_type}])
            for field, method in spec.field_methods.items()
        ]

    inputs = [{"name": f"arg{i}", "type": t} for i, t in enumerate(spec.arg_types)]
    if spec.sequence:
        outputs = [{"name": "", "type": "tuple[]", "components": _params(spec.schema)}]
    else:
        outputs = _params(spec.schema)
    return [view_function(spec.method or "", inputs, outputs)]


def build_abi(definitions: Iterable[ReportDefinition]) -> List[Dict[str, Any]]:
    abi: List[Dict[str, Any]] = []
    for definition in definitions:
        for spec in definition.bundles:
            abi.extend(bundle_functions(spec))
    return abi


def load_abi(path: Path) -> List[Dict[str, Any]]:
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot load ABI from {path}: {exc}") from exc
    # Hardhat/Truffle artifacts wrap the ABI under "abi".
    if isinstance(raw, dict) and "abi" in raw:
        raw = raw["abi"]
    if not isinstance(raw, list):
        raise ConfigurationError(f"ABI file {path} does not contain a list of entries")
    return raw


def _named(components: List[Dict[str, Any]], values: Any, context: str) -> Dict[str, Any]:
    if isinstance(values, Mapping):
        return dict(values)
    if not isinstance(values, (list, tuple)) or len(values) != len(components):
        raise SourceUnavailable(
            f"{context}: expected {len(components)} output values, got {values!r}"
        )
    return {c["name"]: _decode(c, v, context) for c, v in zip(components, values)}


def _decode(param: Dict[str, Any], value: Any, context: str) -> Any:
    kind = param.get("type", "")
    if kind == "tuple":
        return _named(param.get("components", []), value, context)
    if kind == "tuple[]":
        return [_named(param.get("components", []), v, context) for v in value]
    return value


def decode_outputs(function_abi: Dict[str, Any], result: Any) -> Any:
    """Attach ABI output names to a positional contract call result."""
    outputs = function_abi.get("outputs", [])
    context = function_abi.get("name", "call")
    if len(outputs) == 1:
        return _decode(outputs[0], result, context)
    return _named(outputs, result, context)
