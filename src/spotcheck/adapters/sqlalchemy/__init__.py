"""SQLAlchemy adapter package for the mismatch ledger."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    metadata,
    spotcheck_mismatch_table,
    spotcheck_report_table,
)
from .repositories import SqlAlchemyMismatchRepository, SqlAlchemySpotCheckReportRepository
from .unit_of_work import (
    SqlAlchemySpotCheckUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyMismatchRepository",
    "SqlAlchemySpotCheckReportRepository",
    "SqlAlchemySpotCheckUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "spotcheck_mismatch_table",
    "spotcheck_report_table",
    "startup",
]
