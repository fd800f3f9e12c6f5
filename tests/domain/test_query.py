from __future__ import annotations

from datetime import date, timedelta

import pytest

from spotcheck.domain.model import (
    MismatchOrderBy,
    MismatchStatus,
    SortOrder,
    SpotCheckContentType,
    SpotCheckDataSource,
)
from spotcheck.domain.query import LimitOffset, MismatchQuery, PaginatedList
from spotcheck.domain.time_windows import report_end, report_start, session_start

REPORT_DATE = date(2017, 3, 10)


def test_limit_offset_zero_limit_means_all() -> None:
    assert LimitOffset.ALL.is_all
    assert LimitOffset(offset=8).is_all
    assert not LimitOffset(limit=3).is_all


def test_limit_offset_rejects_negative_values() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        LimitOffset(limit=-1)
    with pytest.raises(ValueError, match="non-negative"):
        LimitOffset(offset=-1)


def test_paginated_list_reports_more_pages() -> None:
    page = PaginatedList(results=[1, 2], total=5, limit_offset=LimitOffset(limit=2))
    last = PaginatedList(results=[5], total=5, limit_offset=LimitOffset(limit=2, offset=4))
    everything = PaginatedList(results=[1, 2, 3], total=3)

    assert page.has_more
    assert not last.has_more
    assert not everything.has_more
    assert len(page) == 2


@pytest.mark.parametrize(
    ("status", "observed_start", "first_seen_start", "first_seen_end"),
    [
        (
            MismatchStatus.NEW,
            report_start(REPORT_DATE),
            report_start(REPORT_DATE),
            report_end(REPORT_DATE),
        ),
        (
            MismatchStatus.EXISTING,
            report_start(REPORT_DATE),
            session_start(REPORT_DATE),
            report_start(REPORT_DATE) - timedelta(microseconds=1),
        ),
        (
            MismatchStatus.RESOLVED,
            report_start(REPORT_DATE),
            session_start(REPORT_DATE),
            report_end(REPORT_DATE),
        ),
        (
            MismatchStatus.OPEN,
            session_start(REPORT_DATE),
            session_start(REPORT_DATE),
            report_end(REPORT_DATE),
        ),
    ],
)
def test_for_status_takes_date_bounds_from_the_status_window(
    status: MismatchStatus,
    observed_start: object,
    first_seen_start: object,
    first_seen_end: object,
) -> None:
    query = MismatchQuery.for_status(
        report_date=REPORT_DATE,
        datasource=SpotCheckDataSource.LBDC,
        status=status,
    )

    assert query.observed_start == observed_start
    assert query.observed_end == report_end(REPORT_DATE)
    assert query.first_seen_start == first_seen_start
    assert query.first_seen_end == first_seen_end


def test_for_status_defaults_and_overrides() -> None:
    default = MismatchQuery.for_status(
        report_date=REPORT_DATE,
        datasource=SpotCheckDataSource.LBDC,
        status=MismatchStatus.OPEN,
    )
    narrowed = MismatchQuery.for_status(
        report_date=REPORT_DATE,
        datasource=SpotCheckDataSource.LBDC,
        status=MismatchStatus.OPEN,
        content_types=[SpotCheckContentType.BILL],
        order_by=MismatchOrderBy.FIRST_SEEN_DATE,
        sort_order=SortOrder.ASC,
    )

    assert default.content_types == frozenset(SpotCheckContentType)
    assert default.order_by is MismatchOrderBy.OBSERVED_DATE
    assert default.sort_order is SortOrder.DESC
    assert narrowed.content_types == frozenset({SpotCheckContentType.BILL})
    assert narrowed.order_by is MismatchOrderBy.FIRST_SEEN_DATE
    assert default.session_window.start == session_start(REPORT_DATE)
    assert default.session_window.end == report_end(REPORT_DATE)
