"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import MismatchRepository, SpotCheckReportRepository
from .unit_of_work import (
    RepositoryCollection,
    SpotCheckRepositories,
    SpotCheckUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "MismatchRepository",
    "RepositoryCollection",
    "SpotCheckReportRepository",
    "SpotCheckRepositories",
    "SpotCheckUnitOfWork",
    "UnitOfWork",
]
