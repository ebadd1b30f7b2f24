from __future__ import annotations


class ReportingError(Exception):
    """Base class for every failure that aborts a report invocation."""


class SourceUnavailable(ReportingError):
    """The metric source could not be reached or returned malformed data."""


class NormalizationError(ReportingError):
    """A declared field is missing from a raw bundle or cannot be parsed."""

    def __init__(self, message: str, domain: str = "", field: str = ""):
        super().__init__(message)
        self.domain = domain
        self.field = field


class WriteFailure(ReportingError):
    """The assembled report could not be persisted."""


class ConfigurationError(ReportingError):
    pass
