"""Ports for persisting reports and the mismatch ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from spotcheck.domain.model import (
        DeNormSpotCheckMismatch,
        IgnoreStatus,
        SpotCheckContentType,
        SpotCheckDataSource,
        SpotCheckReport,
    )
    from spotcheck.domain.query import LimitOffset, MismatchQuery, PaginatedList
    from spotcheck.domain.time_windows import SessionWindow


@runtime_checkable
class SpotCheckReportRepository(Protocol):
    """Persistence contract for comparison-pass reports."""

    def add(self, report: SpotCheckReport[Any]) -> int:
        """Record ``report`` and return its newly assigned id."""
        ...

    def get(self, report_id: int) -> SpotCheckReport[Any]:
        """Return the stored report header; observations are not persisted."""
        ...


@runtime_checkable
class MismatchRepository(Protocol):
    """Persistence contract for the append-only mismatch ledger.

    Every read considers only the active row (the latest one) per
    ``(key, mismatch_type, datasource)`` whose report time falls in the window.
    """

    def query_open(
        self,
        datasource: SpotCheckDataSource,
        content_type: SpotCheckContentType,
        window: SessionWindow,
    ) -> list[DeNormSpotCheckMismatch[Any]]: ...

    def query_active(
        self,
        datasource: SpotCheckDataSource,
        window: SessionWindow,
        *,
        content_type: SpotCheckContentType | None = None,
        ignored_statuses: Iterable[IgnoreStatus] = (),
    ) -> list[DeNormSpotCheckMismatch[Any]]: ...

    def query(
        self,
        query: MismatchQuery,
        limit_offset: LimitOffset,
    ) -> PaginatedList[DeNormSpotCheckMismatch[Any]]: ...

    def get(self, mismatch_id: int) -> DeNormSpotCheckMismatch[Any]: ...

    def add_all(self, rows: Sequence[DeNormSpotCheckMismatch[Any]]) -> None: ...

    def count_report_rows(self, report_id: int) -> int: ...

    def set_ignore_status(self, mismatch_id: int, status: IgnoreStatus) -> None: ...

    def add_issue_id(self, mismatch_id: int, issue_id: str) -> None: ...

    def update_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        """Replace the row's issue ids with exactly ``issue_id``."""
        ...

    def delete_issue_id(self, mismatch_id: int, issue_id: str) -> None: ...

    def clear_issue_ids(self, mismatch_id: int) -> None: ...
