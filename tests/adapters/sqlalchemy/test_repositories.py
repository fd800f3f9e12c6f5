from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from spotcheck.adapters.sqlalchemy.repositories import (
    SqlAlchemyMismatchRepository,
    SqlAlchemySpotCheckReportRepository,
)
from spotcheck.domain import ledger
from spotcheck.domain.model import (
    AgendaKey,
    IgnoreStatus,
    MismatchNotFoundError,
    MismatchOrderBy,
    MismatchState,
    MismatchStatus,
    ReportNotFoundError,
    SortOrder,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
    SpotCheckRefType,
)
from spotcheck.domain.query import LimitOffset, MismatchQuery
from spotcheck.domain.time_windows import session_window
from tests.helpers.spotcheck_reports import S1, S2, S3, at, make_report, make_row

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from spotcheck.adapters.sqlalchemy.unit_of_work import SqlAlchemySpotCheckUnitOfWork

    UowFactory = Callable[[], SqlAlchemySpotCheckUnitOfWork]

TITLE = SpotCheckMismatchType.BILL_TITLE
SPONSOR = SpotCheckMismatchType.BILL_SPONSOR
LBDC = SpotCheckDataSource.LBDC
BILL = SpotCheckContentType.BILL


def _add_report(session: Session) -> int:
    return SqlAlchemySpotCheckReportRepository(session).add(make_report({}, report_date_time=at(1)))


def test_report_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemySpotCheckReportRepository(sqlite_session)
    report = make_report({S1: [TITLE]}, report_date_time=at(1))
    report.notes = "daybreak"

    report_id = repository.add(report)
    stored = repository.get(report_id)

    assert stored.id == report_id
    assert stored.reference_type is SpotCheckRefType.LBDC_DAYBREAK
    assert stored.report_date_time == at(1)
    assert stored.notes == "daybreak"
    assert stored.observations is None
    with pytest.raises(ReportNotFoundError):
        repository.get(report_id + 100)


def test_mismatch_round_trip_preserves_key_and_annotations(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    agenda_row = make_row(
        S1,
        SpotCheckMismatchType.AGENDA_CHAIR,
        reference_type=SpotCheckRefType.LBDC_AGENDA_ALERT,
        report_id=report_id,
        issue_ids={"ISSUE-1"},
        ignore_status=IgnoreStatus.IGNORE_ONCE,
    )
    agenda_row.key = AgendaKey(agenda_no=4, year=2017, committee="Rules")

    repository.add_all([agenda_row])
    stored = repository.get(1)

    assert stored.mismatch_id == 1
    assert stored.key == AgendaKey(agenda_no=4, year=2017, committee="Rules")
    assert stored.content_type is SpotCheckContentType.AGENDA
    assert stored.issue_ids == {"ISSUE-1"}
    assert stored.ignore_status is IgnoreStatus.IGNORE_ONCE
    assert stored.reference_id == agenda_row.reference_id
    assert stored.first_seen_date_time == agenda_row.first_seen_date_time


def test_open_ledger_uses_latest_row_per_identity(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all(
        [
            make_row(S1, TITLE, reported=at(1), report_id=report_id),
            make_row(S1, TITLE, state=MismatchState.RESOLVED, reported=at(2), report_id=report_id),
            make_row(S2, TITLE, reported=at(1), report_id=report_id),
            make_row(S2, TITLE, state=MismatchState.EXISTING, reported=at(3), report_id=report_id),
            make_row(S3, SPONSOR, reported=at(5), report_id=report_id),
        ]
    )

    open_rows = repository.query_open(LBDC, BILL, session_window(date(2017, 3, 4)))

    assert [(row.key, row.state) for row in open_rows] == [(S2, MismatchState.EXISTING)]


def test_query_active_filters_content_type_and_ignore_status(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all(
        [
            make_row(S1, TITLE, report_id=report_id),
            make_row(S2, TITLE, report_id=report_id, ignore_status=IgnoreStatus.IGNORE_PERMANENTLY),
        ]
    )

    window = session_window(date(2017, 3, 1))
    everything = repository.query_active(LBDC, window)
    visible = repository.query_active(
        LBDC, window, content_type=BILL, ignored_statuses=[IgnoreStatus.IGNORE_PERMANENTLY]
    )
    agendas = repository.query_active(LBDC, window, content_type=SpotCheckContentType.AGENDA)

    assert len(everything) == 2
    assert [row.key for row in visible] == [S1]
    assert agendas == []


def test_query_orders_and_pages(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all(
        [
            make_row(S1, TITLE, reported=at(1), report_id=report_id),
            make_row(S2, TITLE, reported=at(3), report_id=report_id),
            make_row(S3, TITLE, reported=at(2), report_id=report_id),
        ]
    )
    query = MismatchQuery.for_status(
        report_date=date(2017, 3, 5),
        datasource=LBDC,
        status=MismatchStatus.OPEN,
        order_by=MismatchOrderBy.OBSERVED_DATE,
        sort_order=SortOrder.ASC,
    )

    first = repository.query(query, LimitOffset(limit=2))
    second = repository.query(query, LimitOffset(limit=2, offset=2))

    assert first.total == second.total == 3
    assert [row.key for row in first.results] == [S1, S3]
    assert first.has_more
    assert [row.key for row in second.results] == [S2]
    assert not second.has_more


def _status_query(status: MismatchStatus, **kwargs: object) -> MismatchQuery:
    return MismatchQuery.for_status(
        report_date=date(2017, 3, 10), datasource=LBDC, status=status, **kwargs
    )


def test_query_filters_by_status_window_ignore_and_type(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all(
        [
            make_row(S1, TITLE, reported=at(10), report_id=report_id),
            make_row(
                S2,
                TITLE,
                state=MismatchState.EXISTING,
                reported=at(10),
                first_seen=at(1),
                report_id=report_id,
            ),
            make_row(
                S3,
                SPONSOR,
                reported=at(10),
                report_id=report_id,
                ignore_status=IgnoreStatus.IGNORE_PERMANENTLY,
            ),
            make_row(
                S1,
                SPONSOR,
                state=MismatchState.RESOLVED,
                reported=at(9),
                first_seen=at(2),
                report_id=report_id,
            ),
        ]
    )

    def keys(query: MismatchQuery) -> set[object]:
        return {row.key for row in repository.query(query, LimitOffset.ALL).results}

    assert keys(_status_query(MismatchStatus.NEW)) == {S1, S3}
    assert keys(_status_query(MismatchStatus.EXISTING)) == {S2}
    assert keys(_status_query(MismatchStatus.RESOLVED)) == set()
    assert keys(_status_query(MismatchStatus.OPEN)) == {S1, S2, S3}
    ignoring = _status_query(
        MismatchStatus.NEW, ignored_statuses=frozenset({IgnoreStatus.IGNORE_PERMANENTLY})
    )
    assert keys(ignoring) == {S1}
    sponsors = _status_query(MismatchStatus.NEW, mismatch_types=frozenset({SPONSOR}))
    assert keys(sponsors) == {S3}
    calendars = _status_query(
        MismatchStatus.OPEN, content_types=[SpotCheckContentType.CALENDAR]
    )
    assert repository.query(calendars, LimitOffset.ALL).total == 0


@pytest.mark.parametrize(
    ("order_by", "sort_order", "expected"),
    [
        (MismatchOrderBy.FIRST_SEEN_DATE, SortOrder.ASC, [S2, S1, S3]),
        (MismatchOrderBy.FIRST_SEEN_DATE, SortOrder.DESC, [S3, S1, S2]),
        (MismatchOrderBy.MISMATCH_TYPE, SortOrder.ASC, [S3, S1, S2]),
    ],
)
def test_query_orders_by_requested_column(
    sqlite_session: Session,
    order_by: MismatchOrderBy,
    sort_order: SortOrder,
    expected: list[object],
) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all(
        [
            make_row(S1, TITLE, reported=at(4), first_seen=at(2), report_id=report_id),
            make_row(S2, TITLE, reported=at(4), first_seen=at(1), report_id=report_id),
            make_row(S3, SPONSOR, reported=at(4), first_seen=at(3), report_id=report_id),
        ]
    )
    query = MismatchQuery.for_status(
        report_date=date(2017, 3, 4),
        datasource=LBDC,
        status=MismatchStatus.OPEN,
        order_by=order_by,
        sort_order=sort_order,
    )

    page = repository.query(query, LimitOffset.ALL)

    assert [row.key for row in page.results] == expected


def test_annotations_update_rows_in_place(sqlite_session: Session) -> None:
    report_id = _add_report(sqlite_session)
    repository = SqlAlchemyMismatchRepository(sqlite_session)
    repository.add_all([make_row(report_id=report_id)])

    repository.set_ignore_status(1, IgnoreStatus.IGNORE_UNTIL_RESOLVED)
    repository.add_issue_id(1, "ISSUE-1")
    repository.add_issue_id(1, "ISSUE-1")
    repository.add_issue_id(1, "ISSUE-2")
    repository.delete_issue_id(1, "ISSUE-2")

    stored = repository.get(1)
    assert stored.ignore_status is IgnoreStatus.IGNORE_UNTIL_RESOLVED
    assert stored.issue_ids == {"ISSUE-1"}
    assert repository.count_report_rows(report_id) == 1

    repository.add_issue_id(1, "ISSUE-3")
    repository.update_issue_id(1, "ISSUE-9")
    assert repository.get(1).issue_ids == {"ISSUE-9"}

    repository.clear_issue_ids(1)
    assert repository.get(1).issue_ids == set()


def test_annotations_on_missing_rows_raise(sqlite_session: Session) -> None:
    repository = SqlAlchemyMismatchRepository(sqlite_session)

    with pytest.raises(MismatchNotFoundError):
        repository.set_ignore_status(42, IgnoreStatus.IGNORE_ONCE)
    with pytest.raises(MismatchNotFoundError):
        repository.add_issue_id(42, "ISSUE-1")
    with pytest.raises(MismatchNotFoundError):
        repository.clear_issue_ids(42)
    with pytest.raises(MismatchNotFoundError):
        repository.update_issue_id(42, "ISSUE-1")
    with pytest.raises(MismatchNotFoundError):
        repository.get(42)


def test_ledger_lifecycle_through_sqlite(sqlite_unit_of_work: UowFactory) -> None:
    for day, mismatch_types in [(1, [TITLE, SPONSOR]), (2, [TITLE]), (3, [])]:
        ledger.save_report(
            make_report({S1: mismatch_types}, report_date_time=at(day)),
            unit_of_work_factory=sqlite_unit_of_work,
        )

    with sqlite_unit_of_work() as uow:
        rows = [uow.repositories.mismatches.get(mismatch_id) for mismatch_id in range(1, 6)]

    assert {(row.mismatch_type, row.state, row.report_date_time) for row in rows} == {
        (TITLE, MismatchState.NEW, at(1)),
        (SPONSOR, MismatchState.NEW, at(1)),
        (TITLE, MismatchState.EXISTING, at(2)),
        (SPONSOR, MismatchState.RESOLVED, at(2)),
        (TITLE, MismatchState.RESOLVED, at(3)),
    }
    assert {row.first_seen_date_time for row in rows} == {at(1)}

    summary = ledger.get_status_summary(
        date(2017, 3, 3), LBDC, unit_of_work_factory=sqlite_unit_of_work
    )
    assert summary.count(MismatchState.RESOLVED) == 2
    assert summary.open == 0


def test_rerunning_a_reconciled_report_appends_nothing(sqlite_unit_of_work: UowFactory) -> None:
    report = make_report({S1: [TITLE]}, report_date_time=at(1))
    ledger.save_report(report, unit_of_work_factory=sqlite_unit_of_work)

    result = ledger.reconcile_report(report, unit_of_work_factory=sqlite_unit_of_work)

    assert result.already_reconciled
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.mismatches.count_report_rows(result.report_id) == 1
