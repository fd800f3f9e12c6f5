"""Application services for the mismatch ledger.

These functions own the transactional boundaries around the pure
reconciliation engine: a report is recorded first (obtaining its id), then its
mismatches are merged against a consistent snapshot of the open ledger and
appended in a single unit of work, serialised per ``(datasource,
content_type)`` scope.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC
from typing import TYPE_CHECKING, Any

from spotcheck.domain.model import (
    IgnoreStatus,
    InvalidArgumentError,
    InvalidReportError,
    MismatchState,
    MismatchStatus,
    SpotCheckContentType,
    SpotCheckDataSource,
)
from spotcheck.domain.query import LimitOffset
from spotcheck.domain.reconciliation import ReconciliationEngine, ensure_reconcilable
from spotcheck.domain.summary import (
    MismatchContentTypeSummary,
    MismatchStatusSummary,
    MismatchTypeSummary,
    summarize_content_types,
    summarize_status,
    summarize_types,
)
from spotcheck.domain.time_windows import MismatchWindow, session_window

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator
    from datetime import date

    from spotcheck.domain.model import DeNormSpotCheckMismatch, SpotCheckReport
    from spotcheck.domain.ports.unit_of_work import SpotCheckUnitOfWork
    from spotcheck.domain.query import MismatchQuery, PaginatedList

    UnitOfWorkFactory = Callable[[], SpotCheckUnitOfWork]

log = logging.getLogger(__name__)

type Scope = tuple[SpotCheckDataSource, SpotCheckContentType]


class ScopeLocks:
    """One lock per reconciliation scope; different scopes never block each other."""

    def __init__(self) -> None:
        self._locks: dict[Scope, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(
        self, datasource: SpotCheckDataSource, content_type: SpotCheckContentType
    ) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault((datasource, content_type), threading.Lock())

    @contextmanager
    def hold(
        self, datasource: SpotCheckDataSource, content_type: SpotCheckContentType
    ) -> Iterator[None]:
        lock = self.lock_for(datasource, content_type)
        with lock:
            yield


_SCOPE_LOCKS = ScopeLocks()


@dataclass(slots=True)
class ReconcileReportResult:
    """Outcome of merging one report into the ledger.

    ``summary`` counts the rows this call appended; it is ``None`` when the
    report had already been reconciled and nothing was appended.
    """

    report_id: int
    row_count: int
    summary: MismatchStatusSummary | None = None
    already_reconciled: bool = False


def save_report(
    report: SpotCheckReport[Any],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    engine: ReconciliationEngine | None = None,
    locks: ScopeLocks | None = None,
) -> ReconcileReportResult | None:
    """Record ``report`` and merge its observations into the ledger.

    The report row is committed on its own before merging so it always has an
    id. Returns ``None`` when the report carries no observations; nothing is
    merged in that case.
    """

    with unit_of_work_factory() as uow:
        report_id = uow.repositories.reports.add(report)
        uow.commit()
    report.id = report_id
    log.info(
        "Saved report %s: reference_type=%s, report_date_time=%s",
        report_id,
        report.reference_type,
        report.report_date_time,
    )

    if report.observations is None:
        log.warning("The observations have not been set on report %s; skipping merge", report_id)
        return None

    return reconcile_report(
        report,
        unit_of_work_factory=unit_of_work_factory,
        engine=engine,
        locks=locks,
    )


def reconcile_report(
    report: SpotCheckReport[Any],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    engine: ReconciliationEngine | None = None,
    locks: ScopeLocks | None = None,
) -> ReconcileReportResult:
    """Merge an already recorded report into the ledger.

    Safe to re-run after a crash: a report whose rows were already appended is
    left untouched.
    """

    try:
        report_id = ensure_reconcilable(report)
    except InvalidReportError:
        log.exception("Refusing to reconcile report %s", report.id)
        raise

    effective_engine = engine or ReconciliationEngine()
    window = session_window(report.report_date_time.astimezone(UTC).date())

    with (locks or _SCOPE_LOCKS).hold(report.datasource, report.content_type):
        with unit_of_work_factory() as uow:
            mismatches = uow.repositories.mismatches
            existing = mismatches.count_report_rows(report_id)
            if existing:
                log.info("Report %s already reconciled (%s rows); skipping", report_id, existing)
                return ReconcileReportResult(
                    report_id=report_id,
                    row_count=existing,
                    already_reconciled=True,
                )

            current = mismatches.query_open(report.datasource, report.content_type, window)
            merged = effective_engine.reconcile(report, current)
            mismatches.add_all(merged)
            uow.commit()

    summary = summarize_status(merged)
    log.info(
        "Reconciled report %s: new=%s, existing=%s, resolved=%s",
        report_id,
        summary.count(MismatchState.NEW),
        summary.count(MismatchState.EXISTING),
        summary.count(MismatchState.RESOLVED),
    )
    return ReconcileReportResult(report_id=report_id, row_count=len(merged), summary=summary)


# Lookup -----------------------------------------------------------------------


def get_mismatch(
    mismatch_id: int, *, unit_of_work_factory: UnitOfWorkFactory
) -> DeNormSpotCheckMismatch[Any]:
    with unit_of_work_factory() as uow:
        return uow.repositories.mismatches.get(mismatch_id)


def query_mismatches(
    query: MismatchQuery,
    limit_offset: LimitOffset = LimitOffset.ALL,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> PaginatedList[DeNormSpotCheckMismatch[Any]]:
    with unit_of_work_factory() as uow:
        return uow.repositories.mismatches.query(query, limit_offset)


# Summaries --------------------------------------------------------------------


def get_status_summary(
    report_date: date,
    datasource: SpotCheckDataSource,
    *,
    content_type: SpotCheckContentType | None = None,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory,
) -> MismatchStatusSummary:
    with unit_of_work_factory() as uow:
        rows = uow.repositories.mismatches.query_active(
            datasource,
            session_window(report_date),
            content_type=content_type,
            ignored_statuses=ignored_statuses,
        )
    return summarize_status(rows)


def get_type_summary(
    report_date: date,
    datasource: SpotCheckDataSource,
    content_type: SpotCheckContentType,
    *,
    status: MismatchStatus = MismatchStatus.OPEN,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory,
) -> MismatchTypeSummary:
    with unit_of_work_factory() as uow:
        rows = uow.repositories.mismatches.query_active(
            datasource,
            session_window(report_date),
            content_type=content_type,
            ignored_statuses=ignored_statuses,
        )
    return summarize_types(
        rows,
        content_type=content_type,
        status=status,
        window=MismatchWindow.for_status(status, report_date),
    )


def get_content_type_summary(
    report_date: date,
    datasource: SpotCheckDataSource,
    *,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory,
) -> MismatchContentTypeSummary:
    with unit_of_work_factory() as uow:
        rows = uow.repositories.mismatches.query_active(
            datasource,
            session_window(report_date),
            ignored_statuses=ignored_statuses,
        )
    return summarize_content_types(rows)


# Annotations ------------------------------------------------------------------


def set_ignore_status(
    mismatch_id: int,
    status: IgnoreStatus | str | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> IgnoreStatus:
    """Set the ignore status of one ledger row in place."""

    resolved = _coerce_ignore_status(status)
    with unit_of_work_factory() as uow:
        uow.repositories.mismatches.set_ignore_status(mismatch_id, resolved)
        uow.commit()
    log.info("Set ignore status of mismatch %s to %s", mismatch_id, resolved)
    return resolved


def add_issue_id(
    mismatch_id: int, issue_id: str, *, unit_of_work_factory: UnitOfWorkFactory
) -> None:
    cleaned = _clean_issue_id(issue_id)
    with unit_of_work_factory() as uow:
        uow.repositories.mismatches.add_issue_id(mismatch_id, cleaned)
        uow.commit()


def update_issue_id(
    mismatch_id: int, issue_id: str, *, unit_of_work_factory: UnitOfWorkFactory
) -> None:
    """Replace every issue id on one ledger row with ``issue_id``."""

    cleaned = _clean_issue_id(issue_id)
    with unit_of_work_factory() as uow:
        uow.repositories.mismatches.update_issue_id(mismatch_id, cleaned)
        uow.commit()


def delete_issue_id(
    mismatch_id: int, issue_id: str, *, unit_of_work_factory: UnitOfWorkFactory
) -> None:
    cleaned = _clean_issue_id(issue_id)
    with unit_of_work_factory() as uow:
        uow.repositories.mismatches.delete_issue_id(mismatch_id, cleaned)
        uow.commit()


def clear_issue_ids(mismatch_id: int, *, unit_of_work_factory: UnitOfWorkFactory) -> None:
    with unit_of_work_factory() as uow:
        uow.repositories.mismatches.clear_issue_ids(mismatch_id)
        uow.commit()


def _coerce_ignore_status(status: IgnoreStatus | str | None) -> IgnoreStatus:
    if status is None:
        raise InvalidArgumentError("Cannot set mismatch ignore status to None")
    if isinstance(status, IgnoreStatus):
        return status
    try:
        return IgnoreStatus(status.strip().lower())
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown ignore status: {status}") from exc


def _clean_issue_id(issue_id: str | None) -> str:
    if issue_id is None or not issue_id.strip():
        raise InvalidArgumentError("Issue id must not be blank")
    return issue_id.strip()
