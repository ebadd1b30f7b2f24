from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Union

from staking_reports.core.report_types import Comparator, MetricBundle, Rule

LOGGER = logging.getLogger(__name__)

_MISSING = object()


def get_nested(view: Mapping, path: str) -> Any:
    cur: Any = view
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None or value is _MISSING:
        return None
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def bundle_view(bundle: MetricBundle) -> Dict[str, Any]:
    """Expose a bundle's fields both bare and under its domain name."""
    payload = bundle.payload()
    view: Dict[str, Any] = dict(payload) if isinstance(payload, dict) else {}
    view[bundle.domain] = payload
    return view


class RuleEvaluator:
    """
    Applies threshold rules in declaration order.

    Every matching rule contributes its message; there is no short-circuit.
    A rule whose field is missing or not comparable simply does not match.
    """

    def matches(self, view: Mapping, rule: Rule) -> bool:
        left = get_nested(view, rule.path)
        if left is _MISSING:
            return False

        if rule.other_path is not None:
            right = get_nested(view, rule.other_path)
            if right is _MISSING:
                return False
        else:
            right = rule.threshold

        if rule.comparator == Comparator.IS:
            return isinstance(left, bool) and left is bool(right)

        a = _as_decimal(left)
        b = _as_decimal(right)

        if rule.comparator == Comparator.EQ:
            if a is not None and b is not None:
                return a == b
            return left == right

        if a is None or b is None:
            return False
        if rule.comparator == Comparator.GT:
            return a > b
        if rule.comparator == Comparator.LT:
            return a < b
        return False

    def evaluate(self, view: Union[Mapping, MetricBundle], rules: Sequence[Rule]) -> List[str]:
        if isinstance(view, MetricBundle):
            view = bundle_view(view)

        messages: List[str] = []
        for rule in rules:
            if self.matches(view, rule):
                LOGGER.debug("Rule matched: %s %s", rule.path, rule.comparator.value)
                messages.append(rule.message)
        return messages
