"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class SpotCheckDataSource(StrEnum):
    """Authoritative source a comparison pass checks against."""

    LBDC = "lbdc"
    NYSENATE = "nysenate"
    OPENLEG = "openleg"


class SpotCheckContentType(StrEnum):
    BILL = "bill"
    CALENDAR = "calendar"
    AGENDA = "agenda"


class SpotCheckRefType(StrEnum):
    """Kind of reference snapshot; implies one datasource and one content type."""

    LBDC_DAYBREAK = "lbdc_daybreak"
    LBDC_SCRAPED_BILL = "lbdc_scraped_bill"
    LBDC_CALENDAR_ALERT = "lbdc_calendar_alert"
    LBDC_AGENDA_ALERT = "lbdc_agenda_alert"
    SENATE_SITE_BILLS = "senate_site_bills"
    SENATE_SITE_CALENDAR = "senate_site_calendar"
    SENATE_SITE_AGENDA = "senate_site_agenda"
    OPENLEG_BILL = "openleg_bill"

    @property
    def datasource(self) -> SpotCheckDataSource:
        return _REF_TYPE_SCOPES[self][0]

    @property
    def content_type(self) -> SpotCheckContentType:
        return _REF_TYPE_SCOPES[self][1]


_REF_TYPE_SCOPES: Final[
    dict[SpotCheckRefType, tuple[SpotCheckDataSource, SpotCheckContentType]]
] = {
    SpotCheckRefType.LBDC_DAYBREAK: (SpotCheckDataSource.LBDC, SpotCheckContentType.BILL),
    SpotCheckRefType.LBDC_SCRAPED_BILL: (SpotCheckDataSource.LBDC, SpotCheckContentType.BILL),
    SpotCheckRefType.LBDC_CALENDAR_ALERT: (
        SpotCheckDataSource.LBDC,
        SpotCheckContentType.CALENDAR,
    ),
    SpotCheckRefType.LBDC_AGENDA_ALERT: (SpotCheckDataSource.LBDC, SpotCheckContentType.AGENDA),
    SpotCheckRefType.SENATE_SITE_BILLS: (
        SpotCheckDataSource.NYSENATE,
        SpotCheckContentType.BILL,
    ),
    SpotCheckRefType.SENATE_SITE_CALENDAR: (
        SpotCheckDataSource.NYSENATE,
        SpotCheckContentType.CALENDAR,
    ),
    SpotCheckRefType.SENATE_SITE_AGENDA: (
        SpotCheckDataSource.NYSENATE,
        SpotCheckContentType.AGENDA,
    ),
    SpotCheckRefType.OPENLEG_BILL: (SpotCheckDataSource.OPENLEG, SpotCheckContentType.BILL),
}


class SpotCheckMismatchType(StrEnum):
    # bill
    BILL_ACTION = "bill_action"
    BILL_ACTIVE_AMENDMENT = "bill_active_amendment"
    BILL_AMENDMENT_PUBLISH = "bill_amendment_publish"
    BILL_COSPONSOR = "bill_cosponsor"
    BILL_LAW_SECTION = "bill_law_section"
    BILL_MEMO = "bill_memo"
    BILL_SPONSOR = "bill_sponsor"
    BILL_SUMMARY = "bill_summary"
    BILL_TEXT_PAGE = "bill_text_page"
    BILL_TITLE = "bill_title"

    # calendar
    CALENDAR_ENTRY_LIST = "calendar_entry_list"
    CALENDAR_SUPPLEMENTAL = "calendar_supplemental"
    CALENDAR_RELEASE_DATE = "calendar_release_date"

    # agenda
    AGENDA_BILL_LISTING = "agenda_bill_listing"
    AGENDA_CHAIR = "agenda_chair"
    AGENDA_LOCATION = "agenda_location"
    AGENDA_MEETING_TIME = "agenda_meeting_time"
    AGENDA_NOTES = "agenda_notes"

    # shared
    REFERENCE_DATA_MISSING = "reference_data_missing"
    OBSERVE_DATA_MISSING = "observe_data_missing"


_SHARED_MISMATCH_TYPES: Final[tuple[SpotCheckMismatchType, ...]] = (
    SpotCheckMismatchType.REFERENCE_DATA_MISSING,
    SpotCheckMismatchType.OBSERVE_DATA_MISSING,
)

_MISMATCH_TYPE_PREFIXES: Final[dict[SpotCheckContentType, str]] = {
    SpotCheckContentType.BILL: "bill_",
    SpotCheckContentType.CALENDAR: "calendar_",
    SpotCheckContentType.AGENDA: "agenda_",
}


def mismatch_types_for(content_type: SpotCheckContentType) -> tuple[SpotCheckMismatchType, ...]:
    """Return every mismatch type that can be reported for ``content_type``."""

    prefix = _MISMATCH_TYPE_PREFIXES[content_type]
    specific = tuple(member for member in SpotCheckMismatchType if member.value.startswith(prefix))
    return specific + _SHARED_MISMATCH_TYPES


class MismatchState(StrEnum):
    """Persisted lifecycle state of one ledger row."""

    NEW = "new"
    EXISTING = "existing"
    RESOLVED = "resolved"


OPEN_STATES: Final[frozenset[MismatchState]] = frozenset(
    {MismatchState.NEW, MismatchState.EXISTING}
)


class IgnoreStatus(StrEnum):
    NOT_IGNORED = "not_ignored"
    IGNORE_ONCE = "ignore_once"
    IGNORE_PERMANENTLY = "ignore_permanently"
    IGNORE_UNTIL_RESOLVED = "ignore_until_resolved"


class MismatchStatus(StrEnum):
    """Logical status used to look up and summarise ledger rows."""

    NEW = "new"
    EXISTING = "existing"
    RESOLVED = "resolved"
    OPEN = "open"

    @property
    def states(self) -> frozenset[MismatchState]:
        if self is MismatchStatus.OPEN:
            return OPEN_STATES
        return frozenset({MismatchState(self.value)})


class MismatchOrderBy(StrEnum):
    OBSERVED_DATE = "observed_date"
    FIRST_SEEN_DATE = "first_seen_date"
    MISMATCH_TYPE = "mismatch_type"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"
