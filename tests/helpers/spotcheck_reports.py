"""Reusable builders and in-memory fakes for mismatch ledger tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Literal

from spotcheck.domain.model import (
    OPEN_STATES,
    BillKey,
    DeNormSpotCheckMismatch,
    IgnoreStatus,
    MismatchNotFoundError,
    MismatchOrderBy,
    MismatchState,
    ReportNotFoundError,
    SortOrder,
    SpotCheckMismatch,
    SpotCheckMismatchType,
    SpotCheckObservation,
    SpotCheckRefType,
    SpotCheckReferenceId,
    SpotCheckReport,
)
from spotcheck.domain.ports.unit_of_work import SpotCheckRepositories
from spotcheck.domain.query import PaginatedList

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence

    from spotcheck.domain.model import SpotCheckContentType, SpotCheckDataSource
    from spotcheck.domain.query import LimitOffset, MismatchQuery
    from spotcheck.domain.time_windows import SessionWindow

type Row = DeNormSpotCheckMismatch[Any]

S1 = BillKey(print_no="S1", session_year=2017)
S2 = BillKey(print_no="S2", session_year=2017)
S3 = BillKey(print_no="S3", session_year=2017)


def at(day: int, hour: int = 12, *, month: int = 3, year: int = 2017) -> datetime:
    """Return a UTC timestamp in the 2017 session."""

    return datetime(year, month, day, hour, tzinfo=UTC)


def make_observation[K: Hashable](
    key: K,
    mismatch_types: Iterable[SpotCheckMismatchType],
    *,
    observed: datetime,
    reference_type: SpotCheckRefType = SpotCheckRefType.LBDC_DAYBREAK,
) -> SpotCheckObservation[K]:
    observation = SpotCheckObservation(
        key=key,
        reference_id=SpotCheckReferenceId(
            reference_type=reference_type,
            reference_date_time=observed - timedelta(days=1),
        ),
        observed_date_time=observed,
    )
    for mismatch_type in mismatch_types:
        observation.add_mismatch(
            SpotCheckMismatch(
                mismatch_type=mismatch_type,
                reference_data=f"reference {mismatch_type}",
                observed_data=f"observed {mismatch_type}",
            )
        )
    return observation


def make_report[K: Hashable](
    observations: Mapping[K, Iterable[SpotCheckMismatchType]] | None,
    *,
    report_date_time: datetime,
    reference_type: SpotCheckRefType = SpotCheckRefType.LBDC_DAYBREAK,
    report_id: int | None = None,
) -> SpotCheckReport[K]:
    """Build a report whose observations each carry the listed mismatch types.

    ``observations=None`` builds a report whose pass produced nothing at all.
    """

    report: SpotCheckReport[K] = SpotCheckReport(
        id=report_id,
        reference_type=reference_type,
        report_date_time=report_date_time,
        reference_date_time=report_date_time - timedelta(days=1),
    )
    if observations is None:
        return report
    report.observations = {}
    for key, mismatch_types in observations.items():
        report.add_observation(
            make_observation(
                key,
                mismatch_types,
                observed=report_date_time,
                reference_type=reference_type,
            )
        )
    return report


def make_row(  # noqa: PLR0913
    key: BillKey = S1,
    mismatch_type: SpotCheckMismatchType = SpotCheckMismatchType.BILL_TITLE,
    *,
    state: MismatchState = MismatchState.NEW,
    reported: datetime | None = None,
    first_seen: datetime | None = None,
    mismatch_id: int | None = None,
    report_id: int | None = 1,
    ignore_status: IgnoreStatus = IgnoreStatus.NOT_IGNORED,
    issue_ids: Iterable[str] = (),
    reference_type: SpotCheckRefType = SpotCheckRefType.LBDC_DAYBREAK,
) -> Row:
    """Build a ledger row in the LBDC bill scope."""

    reported_at = reported or at(1)
    row: Row = DeNormSpotCheckMismatch(
        key=key,
        mismatch_type=mismatch_type,
        datasource=reference_type.datasource,
        content_type=reference_type.content_type,
        reference_id=SpotCheckReferenceId(
            reference_type=reference_type,
            reference_date_time=reported_at - timedelta(days=1),
        ),
        report_date_time=reported_at,
        observed_date_time=reported_at,
        first_seen_date_time=first_seen or reported_at,
        report_id=report_id,
        mismatch_id=mismatch_id,
        ignore_status=ignore_status,
        state=state,
        issue_ids=set(issue_ids),
    )
    return row


# Fakes -------------------------------------------------------------------------


class FakeSpotCheckReportRepository:
    """In-memory report store assigning sequential ids."""

    def __init__(self) -> None:
        self.items: dict[int, SpotCheckReport[Any]] = {}

    def add(self, report: SpotCheckReport[Any]) -> int:
        report_id = len(self.items) + 1
        self.items[report_id] = SpotCheckReport(
            id=report_id,
            reference_type=report.reference_type,
            report_date_time=report.report_date_time,
            reference_date_time=report.reference_date_time,
            notes=report.notes,
        )
        return report_id

    def get(self, report_id: int) -> SpotCheckReport[Any]:
        try:
            return self.items[report_id]
        except KeyError as exc:
            raise ReportNotFoundError(report_id) from exc


class FakeMismatchRepository:
    """In-memory append-only ledger with latest-row-per-identity reads."""

    def __init__(self, initial: Iterable[Row] | None = None) -> None:
        self.rows: list[Row] = []
        self.add_all(list(initial or []))

    def query_open(
        self,
        datasource: SpotCheckDataSource,
        content_type: SpotCheckContentType,
        window: SessionWindow,
    ) -> list[Row]:
        return [
            row
            for row in self._active(datasource, window)
            if row.content_type == content_type and row.state in OPEN_STATES
        ]

    def query_active(
        self,
        datasource: SpotCheckDataSource,
        window: SessionWindow,
        *,
        content_type: SpotCheckContentType | None = None,
        ignored_statuses: Iterable[IgnoreStatus] = (),
    ) -> list[Row]:
        ignored = set(ignored_statuses)
        return [
            row
            for row in self._active(datasource, window)
            if (content_type is None or row.content_type == content_type)
            and row.ignore_status not in ignored
        ]

    def query(self, query: MismatchQuery, limit_offset: LimitOffset) -> PaginatedList[Row]:
        matching = [
            row
            for row in self._active(query.datasource, query.session_window)
            if _matches(query, row)
        ]
        ordered = _ordered(query, matching)
        end = None if limit_offset.is_all else limit_offset.offset + limit_offset.limit
        return PaginatedList(
            results=ordered[limit_offset.offset : end],
            total=len(ordered),
            limit_offset=limit_offset,
        )

    def get(self, mismatch_id: int) -> Row:
        return self._find(mismatch_id)

    def add_all(self, rows: Sequence[Row]) -> None:
        for row in rows:
            self.rows.append(replace(row, mismatch_id=len(self.rows) + 1))

    def count_report_rows(self, report_id: int) -> int:
        return sum(1 for row in self.rows if row.report_id == report_id)

    def set_ignore_status(self, mismatch_id: int, status: IgnoreStatus) -> None:
        self._find(mismatch_id).ignore_status = status

    def add_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        self._find(mismatch_id).issue_ids.add(issue_id)

    def update_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        row = self._find(mismatch_id)
        row.issue_ids = {issue_id}

    def delete_issue_id(self, mismatch_id: int, issue_id: str) -> None:
        self._find(mismatch_id).issue_ids.discard(issue_id)

    def clear_issue_ids(self, mismatch_id: int) -> None:
        self._find(mismatch_id).issue_ids.clear()

    def _find(self, mismatch_id: int) -> Row:
        for row in self.rows:
            if row.mismatch_id == mismatch_id:
                return row
        raise MismatchNotFoundError(mismatch_id)

    def _active(self, datasource: SpotCheckDataSource, window: SessionWindow) -> list[Row]:
        latest: dict[Any, Row] = {}
        for row in self.rows:
            if row.datasource != datasource:
                continue
            if not window.start <= row.report_date_time <= window.end:
                continue
            held = latest.get(row.identity)
            if held is None or (row.report_date_time, row.mismatch_id or 0) > (
                held.report_date_time,
                held.mismatch_id or 0,
            ):
                latest[row.identity] = row
        return sorted(latest.values(), key=lambda row: row.mismatch_id or 0)


def _within(value: datetime, lower: datetime | None, upper: datetime | None) -> bool:
    return (lower is None or value >= lower) and (upper is None or value <= upper)


def _matches(query: MismatchQuery, row: Row) -> bool:
    return (
        row.content_type in query.content_types
        and row.state in query.status.states
        and (query.mismatch_types is None or row.mismatch_type in query.mismatch_types)
        and row.ignore_status not in query.ignored_statuses
        and _within(row.observed_date_time, query.observed_start, query.observed_end)
        and _within(row.first_seen_date_time, query.first_seen_start, query.first_seen_end)
    )


def _ordered(query: MismatchQuery, rows: list[Row]) -> list[Row]:
    columns: dict[MismatchOrderBy, Callable[[Row], Any]] = {
        MismatchOrderBy.OBSERVED_DATE: lambda row: row.observed_date_time,
        MismatchOrderBy.FIRST_SEEN_DATE: lambda row: row.first_seen_date_time,
        MismatchOrderBy.MISMATCH_TYPE: lambda row: row.mismatch_type.name,
    }
    column = columns[query.order_by]
    return sorted(
        rows,
        key=lambda row: (column(row), row.mismatch_id or 0),
        reverse=query.sort_order is SortOrder.DESC,
    )


class FakeSpotCheckUnitOfWork:
    """Unit of work over shared in-memory repositories, recording commits."""

    def __init__(
        self,
        reports: FakeSpotCheckReportRepository | None = None,
        mismatches: FakeMismatchRepository | None = None,
    ) -> None:
        self.repositories = SpotCheckRepositories(
            reports=reports or FakeSpotCheckReportRepository(),
            mismatches=mismatches or FakeMismatchRepository(),
        )
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self) -> FakeSpotCheckUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


if TYPE_CHECKING:
    from spotcheck.domain.ports.persistence import MismatchRepository, SpotCheckReportRepository

    _check_reports: SpotCheckReportRepository = FakeSpotCheckReportRepository()
    _check_mismatches: MismatchRepository = FakeMismatchRepository()
