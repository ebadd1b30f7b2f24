from __future__ import annotations

from enum import Enum


class ReportCategory(str, Enum):
    """Report categories; the value doubles as the output directory name."""
    COST = "cost"
    COMPLIANCE = "compliance"
    MONITORING = "monitoring"
    PERFORMANCE = "performance"
    ANALYTICS = "analytics"
    RISK = "risk"
    STRATEGY = "strategy"
    SIMULATION = "simulation"
    SUMMARY = "reports"
