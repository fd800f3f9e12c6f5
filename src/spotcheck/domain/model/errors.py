"""Domain error hierarchy for the mismatch ledger."""

from __future__ import annotations


class SpotCheckError(RuntimeError):
    """Base class for mismatch ledger errors."""


class NotFoundError(SpotCheckError, LookupError):
    """Raised when a requested ledger record does not exist."""


class MismatchNotFoundError(NotFoundError):
    """Raised when no ledger row carries the requested mismatch id."""

    def __init__(self, mismatch_id: int) -> None:
        super().__init__(f"Mismatch {mismatch_id} not found")
        self.mismatch_id = mismatch_id


class ReportNotFoundError(NotFoundError):
    """Raised when no report carries the requested report id."""

    def __init__(self, report_id: int) -> None:
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class InvalidArgumentError(SpotCheckError, ValueError):
    """Raised for malformed annotation requests; nothing is mutated."""


class InvalidReportError(SpotCheckError):
    """Raised when a report cannot be reconciled in its current state."""


class PersistenceError(SpotCheckError):
    """Raised when the report store fails underneath a ledger operation."""
