from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from staking_reports.core.errors import NormalizationError
from staking_reports.core.report_types import MetricBundle
from staking_reports.domain.schemas import DomainSchema, FieldKind, FieldSpec

LOGGER = logging.getLogger(__name__)

DEFAULT_TOKEN_DECIMALS = 18


def format_token_amount(base_units: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> str:
    """Render a base-unit integer as a whole-token decimal string, without rounding."""
    whole, frac = divmod(abs(base_units), 10 ** decimals)
    sign = "-" if base_units < 0 else ""
    frac_text = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    if frac_text:
        return f"{sign}{whole}.{frac_text}"
    return f"{sign}{whole}"


def _parse_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"unsupported integer representation: {type(value).__name__}")


def _parse_number(value: Any) -> int | str:
    """Integral values become int; fractions stay exact as a plain decimal string."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, int):
        return value
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if d == d.to_integral_value():
        return int(d)
    return format(d.normalize(), "f")


def _parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError(f"not a boolean: {value!r}")


def _json_safe(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Decimal):
        return str(value)
    return value


class SchemaNormalizer:
    def __init__(self, token_decimals: int = DEFAULT_TOKEN_DECIMALS):
        if token_decimals < 0:
            raise ValueError("token_decimals must be >= 0")
        self.token_decimals = int(token_decimals)

    def normalize_value(self, value: Any, spec: FieldSpec, domain: str = "") -> Any:
        kind = spec.kind
        try:
            if kind == FieldKind.TOKEN_AMOUNT:
                return format_token_amount(_parse_integer(value), self.token_decimals)
            if kind == FieldKind.INTEGER:
                return _parse_integer(value)
            if kind == FieldKind.NUMBER:
                return _parse_number(value)
            if kind == FieldKind.BOOLEAN:
                return _parse_boolean(value)
            if kind == FieldKind.TEXT:
                if value is None:
                    raise ValueError("text field is null")
                return value if isinstance(value, str) else str(value)
            return _json_safe(value)
        except ValueError as exc:
            raise NormalizationError(
                f"Cannot normalize {domain}.{spec.name} as {kind.value}: {exc}",
                domain=domain,
                field=spec.name,
            ) from exc

    def normalize_record(self, raw: Any, schema: DomainSchema, domain: str = "") -> Dict[str, Any]:
        domain = domain or schema.name
        if not isinstance(raw, Mapping):
            raise NormalizationError(
                f"Expected a field mapping for {domain}, got {type(raw).__name__}",
                domain=domain,
            )

        record: Dict[str, Any] = {}
        for spec in schema.fields:
            if spec.name not in raw:
                raise NormalizationError(
                    f"Missing required field {domain}.{spec.name}",
                    domain=domain,
                    field=spec.name,
                )
            record[spec.name] = self.normalize_value(raw[spec.name], spec, domain)
        return record

    def normalize(
        self,
        raw: Any,
        schema: DomainSchema,
        source: str,
        generated_at: datetime,
        domain: Optional[str] = None,
        sequence: bool = False,
        group: Optional[str] = None,
    ) -> MetricBundle:
        domain = domain or schema.name

        if sequence:
            if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
                raise NormalizationError(
                    f"Expected a list of records for {domain}, got {type(raw).__name__}",
                    domain=domain,
                )
            entries: List[Dict[str, Any]] = [
                self.normalize_record(item, schema, domain) for item in raw
            ]
            LOGGER.debug("Normalized %d %s records", len(entries), domain)
            return MetricBundle(
                domain=domain,
                source=source,
                generated_at=generated_at,
                entries=entries,
                sequence=True,
                group=group,
            )

        values = self.normalize_record(raw, schema, domain)
        LOGGER.debug("Normalized %s (%d fields)", domain, len(values))
        return MetricBundle(
            domain=domain,
            source=source,
            generated_at=generated_at,
            values=values,
            group=group,
        )
