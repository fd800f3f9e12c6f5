"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any

from spotcheck.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySpotCheckUnitOfWork,
    is_started,
    startup,
)
from spotcheck.config import get_ledger_config
from spotcheck.domain import ledger
from spotcheck.domain.ports.unit_of_work import SpotCheckUnitOfWork
from spotcheck.domain.query import LimitOffset, MismatchQuery

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from spotcheck.domain.ledger import ReconcileReportResult
    from spotcheck.domain.model import (
        DeNormSpotCheckMismatch,
        IgnoreStatus,
        MismatchOrderBy,
        MismatchStatus,
        SortOrder,
        SpotCheckContentType,
        SpotCheckDataSource,
        SpotCheckReport,
    )
    from spotcheck.domain.query import PaginatedList
    from spotcheck.domain.summary import (
        MismatchContentTypeSummary,
        MismatchStatusSummary,
        MismatchTypeSummary,
    )

UnitOfWorkFactory = Callable[[], SpotCheckUnitOfWork]


log = getLogger(__name__)


def _resolve_uow(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemySpotCheckUnitOfWork


def _resolve_datasource(datasource: SpotCheckDataSource | None) -> SpotCheckDataSource:
    return datasource or get_ledger_config().default_datasource


def save_spotcheck_report(
    report: SpotCheckReport[Any],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReconcileReportResult | None:
    """Record a finished comparison pass and merge it into the ledger."""

    log.info(
        "Saving report: reference_type=%s, observations=%s",
        report.reference_type,
        None if report.observations is None else len(report.observations),
    )
    return ledger.save_report(report, unit_of_work_factory=_resolve_uow(unit_of_work_factory))


def reconcile_spotcheck_report(
    report: SpotCheckReport[Any],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReconcileReportResult:
    """Merge a report that was recorded earlier but never reconciled."""

    return ledger.reconcile_report(report, unit_of_work_factory=_resolve_uow(unit_of_work_factory))


def find_mismatches(  # noqa: PLR0913
    *,
    report_date: date,
    status: MismatchStatus,
    datasource: SpotCheckDataSource | None = None,
    content_types: Iterable[SpotCheckContentType] | None = None,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    order_by: MismatchOrderBy | None = None,
    sort_order: SortOrder | None = None,
    limit: int | None = None,
    offset: int = 0,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PaginatedList[DeNormSpotCheckMismatch[Any]]:
    """Return one page of active ledger rows matching ``status`` on ``report_date``."""

    options: dict[str, Any] = {"ignored_statuses": frozenset(ignored_statuses)}
    if order_by is not None:
        options["order_by"] = order_by
    if sort_order is not None:
        options["sort_order"] = sort_order
    query = MismatchQuery.for_status(
        report_date=report_date,
        datasource=_resolve_datasource(datasource),
        status=status,
        content_types=content_types,
        **options,
    )
    page = LimitOffset(
        limit=get_ledger_config().page_limit if limit is None else limit,
        offset=offset,
    )
    return ledger.query_mismatches(
        query, page, unit_of_work_factory=_resolve_uow(unit_of_work_factory)
    )


def show_mismatch(
    mismatch_id: int, *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> DeNormSpotCheckMismatch[Any]:
    return ledger.get_mismatch(mismatch_id, unit_of_work_factory=_resolve_uow(unit_of_work_factory))


def mismatch_status_summary(
    report_date: date,
    *,
    datasource: SpotCheckDataSource | None = None,
    content_type: SpotCheckContentType | None = None,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MismatchStatusSummary:
    return ledger.get_status_summary(
        report_date,
        _resolve_datasource(datasource),
        content_type=content_type,
        ignored_statuses=ignored_statuses,
        unit_of_work_factory=_resolve_uow(unit_of_work_factory),
    )


def mismatch_type_summary(  # noqa: PLR0913
    report_date: date,
    content_type: SpotCheckContentType,
    status: MismatchStatus,
    *,
    datasource: SpotCheckDataSource | None = None,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MismatchTypeSummary:
    return ledger.get_type_summary(
        report_date,
        _resolve_datasource(datasource),
        content_type,
        status=status,
        ignored_statuses=ignored_statuses,
        unit_of_work_factory=_resolve_uow(unit_of_work_factory),
    )


def mismatch_content_type_summary(
    report_date: date,
    *,
    datasource: SpotCheckDataSource | None = None,
    ignored_statuses: Iterable[IgnoreStatus] = (),
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MismatchContentTypeSummary:
    return ledger.get_content_type_summary(
        report_date,
        _resolve_datasource(datasource),
        ignored_statuses=ignored_statuses,
        unit_of_work_factory=_resolve_uow(unit_of_work_factory),
    )


def set_mismatch_ignore_status(
    mismatch_id: int,
    status: IgnoreStatus | str | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IgnoreStatus:
    return ledger.set_ignore_status(
        mismatch_id, status, unit_of_work_factory=_resolve_uow(unit_of_work_factory)
    )


def add_mismatch_issue_id(
    mismatch_id: int,
    issue_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    ledger.add_issue_id(
        mismatch_id, issue_id, unit_of_work_factory=_resolve_uow(unit_of_work_factory)
    )
    log.info("Added issue %s to mismatch %s", issue_id, mismatch_id)


def replace_mismatch_issue_id(
    mismatch_id: int,
    issue_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    ledger.update_issue_id(
        mismatch_id, issue_id, unit_of_work_factory=_resolve_uow(unit_of_work_factory)
    )
    log.info("Replaced issues on mismatch %s with %s", mismatch_id, issue_id)


def remove_mismatch_issue_id(
    mismatch_id: int,
    issue_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    ledger.delete_issue_id(
        mismatch_id, issue_id, unit_of_work_factory=_resolve_uow(unit_of_work_factory)
    )
    log.info("Removed issue %s from mismatch %s", issue_id, mismatch_id)


def clear_mismatch_issue_ids(
    mismatch_id: int, *, unit_of_work_factory: UnitOfWorkFactory | None = None
) -> None:
    ledger.clear_issue_ids(mismatch_id, unit_of_work_factory=_resolve_uow(unit_of_work_factory))
    log.info("Cleared issues on mismatch %s", mismatch_id)
