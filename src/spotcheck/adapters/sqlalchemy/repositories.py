"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import func, insert, select, update

from spotcheck.adapters.sqlalchemy.mappings import (
    spotcheck_mismatch_table,
    spotcheck_report_table,
)
from spotcheck.domain.model import (
    OPEN_STATES,
    DeNormSpotCheckMismatch,
    IgnoreStatus,
    MismatchNotFoundError,
    MismatchOrderBy,
    ReportNotFoundError,
    SortOrder,
    SpotCheckReferenceId,
    SpotCheckReport,
    codec_for,
)
from spotcheck.domain.query import PaginatedList

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import ColumnElement, CursorResult, RowMapping, Select, Subquery
    from sqlalchemy.orm import Session

    from spotcheck.domain.model import SpotCheckContentType, SpotCheckDataSource
    from spotcheck.domain.query import LimitOffset, MismatchQuery
    from spotcheck.domain.time_windows import SessionWindow

log = logging.getLogger(__name__)

_mismatches = spotcheck_mismatch_table
_reports = spotcheck_report_table


class SqlAlchemySpotCheckReportRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, report: SpotCheckReport[Any]) -> int:
        stmt = insert(_reports).values(
            reference_type=report.reference_type,
            report_date_time=report.report_date_time,
            reference_date_time=report.reference_date_time,
            notes=report.notes,
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        primary_key = result.inserted_primary_key
        if primary_key is None:
            raise RuntimeError("Report insert did not return a primary key")
        return int(primary_key[0])

    def get(self, report_id: int) -> SpotCheckReport[Any]:
        row = self.session.execute(select(_reports).where(_reports.c.id == report_id)).mappings()
        found = row.one_or_none()
        if found is None:
            raise ReportNotFoundError(report_id)
        return SpotCheckReport(
            id=found["id"],
            reference_type=found["reference_type"],
            report_date_time=found["report_date_time"],
            reference_date_time=found["reference_date_time"],
            notes=found["notes"],
        )


class SqlAlchemyMismatchRepository:
    """Append-only ledger reads and writes.

    Reads operate on the active row per ``(key, mismatch_type, datasource)``:
    the row with the latest ``report_date_time`` (ties broken by id) among rows
    reported inside the session window.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Reads ---------------------------------------------------------------------

    def query_open(
        self,
        datasource: SpotCheckDataSource,
        content_type: SpotCheckContentType,
        window: SessionWindow,
    ) -> list[DeNormSpotCheckMismatch[Any]]:
        active = _active_rows(datasource, window, content_types=(content_type,))
        stmt = (
            select(active)
            .where(active.c.rank == 1)
            .where(active.c.state.in_(tuple(OPEN_STATES)))
            .order_by(active.c.id)
        )
        return [_row_to_mismatch(row) for row in self.session.execute(stmt).mappings()]

    def query_active(
        self,
        datasource: SpotCheckDataSource,
        window: SessionWindow,
        *,
        content_type: SpotCheckContentType | None = None,
        ignored_statuses: Iterable[IgnoreStatus] = (),
    ) -> list[DeNormSpotCheckMismatch[Any]]:
        active = _active_rows(
            datasource,
            window,
            content_types=(content_type,) if content_type is not None else None,
        )
        stmt = select(active).where(active.c.rank == 1).order_by(active.c.id)
        ignored = tuple(ignored_statuses)
        if ignored:
            stmt = stmt.where(active.c.ignore_status.not_in(ignored))
        return [_row_to_mismatch(row) for row in self.session.execute(stmt).mappings()]

    def query(
        self,
        query: MismatchQuery,
        limit_offset: LimitOffset,
    ) -> PaginatedList[DeNormSpotCheckMismatch[Any]]:
        active = _active_rows(
            query.datasource,
            query.session_window,
            content_types=tuple(query.content_types),
        )
        conditions = _query_conditions(active, query)
        base = select(active).where(*conditions)

        total = self.session.execute(
            select(func.count()).select_from(base.subquery("filtered"))
        ).scalar_one()

        stmt = _ordered(base, active, query)
        if not limit_offset.is_all:
            stmt = stmt.limit(limit_offset.limit)
        if limit_offset.offset:
            stmt = stmt.offset(limit_offset.offset)
        results = [_row_to_mismatch(row) for row in self.session.execute(stmt).mappings()]
        return PaginatedList(results=results, total=int(total), limit_offset=limit_offset)

    def get(self, mismatch_id: int) -> DeNormSpotCheckMismatch[Any]:
        stmt = select(_mismatches).where(_mismatches.c.id == mismatch_id)
        row = self.session.execute(stmt).mappings().one_or_none()
        if row is None:
            raise MismatchNotFoundError(mismatch_id)
        return _row_to_mismatch(row)

    def count_report_rows(self, report_id: int) -> int:
        stmt = select(func.count()).select_from(_mismatches).where(
            _mismatches.c.report_id == report_id
        )
        return int(self.session.execute(stmt).scalar_one())

    # Writes --------------------------------------------------------------------

    def add_all(self, rows: Sequence[DeNormSpotCheckMismatch[Any]]) -> None:
        if not rows:
            return
        self.session.execute(insert(_mismatches), [_mismatch_to_row(row) for row in rows])
        log.debug("Appended %s ledger rows", len(rows))

    def set_ignore_status(self, mismatch_id: int, status: IgnoreStatus) -> None:
        stmt = (
            update(_mismatches).where(_mismatches.c.id == mismatch_id).values(ignore_status=status)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount == 0:
            raise MismatchNotFoundError(mismatch_id)

    def add_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        issue_ids = self._issue_ids(mismatch_id)
        if issue_id in issue_ids:
            return
        self._write_issue_ids(mismatch_id, issue_ids | {issue_id})

    def update_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        self._issue_ids(mismatch_id)
        self._write_issue_ids(mismatch_id, {issue_id})

    def delete_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        issue_ids = self._issue_ids(mismatch_id)
        if issue_id not in issue_ids:
            return
        self._write_issue_ids(mismatch_id, issue_ids - {issue_id})

    def clear_issue_ids(self, mismatch_id: int) -> None:
        self._issue_ids(mismatch_id)
        self._write_issue_ids(mismatch_id, set())

    def _issue_ids(self, mismatch_id: int) -> set[str]:
        stmt = select(_mismatches.c.issue_ids).where(_mismatches.c.id == mismatch_id)
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            raise MismatchNotFoundError(mismatch_id)
        return set(row[0])

    def _write_issue_ids(self, mismatch_id: int, issue_ids: set[str]) -> None:
        stmt = (
            update(_mismatches)
            .where(_mismatches.c.id == mismatch_id)
            .values(issue_ids=issue_ids)
        )
        self.session.execute(stmt)


# Statement helpers -------------------------------------------------------------


def _active_rows(
    datasource: SpotCheckDataSource,
    window: SessionWindow,
    *,
    content_types: Iterable[SpotCheckContentType] | None = None,
) -> Subquery:
    """Rank each identity's rows in ``window``; rank 1 is the active row."""

    rank = (
        func.row_number()
        .over(
            partition_by=(_mismatches.c.key, _mismatches.c.mismatch_type, _mismatches.c.datasource),
            order_by=(_mismatches.c.report_date_time.desc(), _mismatches.c.id.desc()),
        )
        .label("rank")
    )
    stmt = (
        select(_mismatches, rank)
        .where(_mismatches.c.datasource == datasource)
        .where(_mismatches.c.report_date_time >= window.start)
        .where(_mismatches.c.report_date_time <= window.end)
    )
    if content_types is not None:
        stmt = stmt.where(_mismatches.c.content_type.in_(tuple(content_types)))
    return stmt.subquery("active")


def _query_conditions(active: Subquery, query: MismatchQuery) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = [
        active.c.rank == 1,
        active.c.state.in_(tuple(query.status.states)),
    ]
    if query.mismatch_types is not None:
        conditions.append(active.c.mismatch_type.in_(tuple(query.mismatch_types)))
    if query.ignored_statuses:
        conditions.append(active.c.ignore_status.not_in(tuple(query.ignored_statuses)))
    if query.observed_start is not None:
        conditions.append(active.c.observed_date_time >= query.observed_start)
    if query.observed_end is not None:
        conditions.append(active.c.observed_date_time <= query.observed_end)
    if query.first_seen_start is not None:
        conditions.append(active.c.first_seen_date_time >= query.first_seen_start)
    if query.first_seen_end is not None:
        conditions.append(active.c.first_seen_date_time <= query.first_seen_end)
    return conditions


def _ordered(stmt: Select[Any], active: Subquery, query: MismatchQuery) -> Select[Any]:
    match query.order_by:
        case MismatchOrderBy.OBSERVED_DATE:
            column = active.c.observed_date_time
        case MismatchOrderBy.FIRST_SEEN_DATE:
            column = active.c.first_seen_date_time
        case MismatchOrderBy.MISMATCH_TYPE:
            column = active.c.mismatch_type
    if query.sort_order is SortOrder.DESC:
        return stmt.order_by(column.desc(), active.c.id.desc())
    return stmt.order_by(column.asc(), active.c.id.asc())


# Row conversion ----------------------------------------------------------------


def _row_to_mismatch(row: RowMapping) -> DeNormSpotCheckMismatch[Any]:
    content_type = row["content_type"]
    return DeNormSpotCheckMismatch(
        mismatch_id=row["id"],
        key=codec_for(content_type).from_map(row["key"]),
        mismatch_type=row["mismatch_type"],
        datasource=row["datasource"],
        content_type=content_type,
        report_id=row["report_id"],
        reference_id=SpotCheckReferenceId(
            reference_type=row["reference_type"],
            reference_date_time=row["reference_active_date_time"],
        ),
        state=row["state"],
        reference_data=row["reference_data"],
        observed_data=row["observed_data"],
        notes=row["notes"],
        issue_ids=set(row["issue_ids"]),
        ignore_status=row["ignore_status"],
        report_date_time=row["report_date_time"],
        observed_date_time=row["observed_date_time"],
        first_seen_date_time=row["first_seen_date_time"],
    )


def _mismatch_to_row(mismatch: DeNormSpotCheckMismatch[Any]) -> dict[str, Any]:
    if mismatch.report_id is None:
        raise ValueError("Ledger rows must reference a saved report")
    return {
        "key": codec_for(mismatch.content_type).to_map(mismatch.key),
        "mismatch_type": mismatch.mismatch_type,
        "datasource": mismatch.datasource,
        "content_type": mismatch.content_type,
        "report_id": mismatch.report_id,
        "reference_type": mismatch.reference_id.reference_type,
        "reference_active_date_time": mismatch.reference_id.reference_date_time,
        "state": mismatch.state,
        "reference_data": mismatch.reference_data,
        "observed_data": mismatch.observed_data,
        "notes": mismatch.notes,
        "issue_ids": set(mismatch.issue_ids),
        "ignore_status": mismatch.ignore_status,
        "report_date_time": mismatch.report_date_time,
        "observed_date_time": mismatch.observed_date_time,
        "first_seen_date_time": mismatch.first_seen_date_time,
    }


if TYPE_CHECKING:
    from spotcheck.domain.ports.persistence import MismatchRepository, SpotCheckReportRepository

    def _check_report_repo(session: Session) -> SpotCheckReportRepository:
        return SqlAlchemySpotCheckReportRepository(session)

    def _check_mismatch_repo(session: Session) -> MismatchRepository:
        return SqlAlchemyMismatchRepository(session)
