"""Filters, ordering and pagination for mismatch ledger lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from spotcheck.domain.model import (
    IgnoreStatus,
    MismatchOrderBy,
    MismatchStatus,
    SortOrder,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
)
from spotcheck.domain.time_windows import MismatchWindow, SessionWindow, session_window

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime


@dataclass(frozen=True, slots=True)
class LimitOffset:
    """Page request; a limit of zero means "all rows"."""

    limit: int = 0
    offset: int = 0

    ALL: ClassVar[LimitOffset]

    def __post_init__(self) -> None:
        if self.limit < 0 or self.offset < 0:
            raise ValueError("limit and offset must be non-negative")

    @property
    def is_all(self) -> bool:
        return self.limit == 0


LimitOffset.ALL = LimitOffset()


@dataclass(kw_only=True)
class PaginatedList[T]:
    """One page of results plus the total row count independent of the page."""

    results: list[T]
    total: int
    limit_offset: LimitOffset = field(default_factory=LimitOffset)

    @property
    def has_more(self) -> bool:
        if self.limit_offset.is_all:
            return False
        return self.limit_offset.offset + len(self.results) < self.total

    def __len__(self) -> int:
        return len(self.results)


@dataclass(frozen=True, kw_only=True)
class MismatchQuery:
    """Filter over the active ledger rows for one datasource and report date."""

    report_date: date
    datasource: SpotCheckDataSource
    status: MismatchStatus = MismatchStatus.OPEN
    content_types: frozenset[SpotCheckContentType] = frozenset(SpotCheckContentType)
    mismatch_types: frozenset[SpotCheckMismatchType] | None = None
    ignored_statuses: frozenset[IgnoreStatus] = frozenset()
    observed_start: datetime | None = None
    observed_end: datetime | None = None
    first_seen_start: datetime | None = None
    first_seen_end: datetime | None = None
    order_by: MismatchOrderBy = MismatchOrderBy.OBSERVED_DATE
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def for_status(
        cls,
        *,
        report_date: date,
        datasource: SpotCheckDataSource,
        status: MismatchStatus,
        content_types: Iterable[SpotCheckContentType] | None = None,
        **kwargs: Any,
    ) -> MismatchQuery:
        """Build a query whose date bounds follow the window of ``status``."""

        window = MismatchWindow.for_status(status, report_date)
        return cls(
            report_date=report_date,
            datasource=datasource,
            status=status,
            content_types=(
                frozenset(content_types)
                if content_types is not None
                else frozenset(SpotCheckContentType)
            ),
            observed_start=window.observed_start,
            observed_end=window.observed_end,
            first_seen_start=window.first_seen_start,
            first_seen_end=window.first_seen_end,
            **kwargs,
        )

    @property
    def session_window(self) -> SessionWindow:
        return session_window(self.report_date)


__all__ = ["LimitOffset", "MismatchQuery", "PaginatedList"]
