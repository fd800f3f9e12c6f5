"""Public domain model surface."""

from __future__ import annotations

from spotcheck.domain.model.enums import (
    OPEN_STATES,
    IgnoreStatus,
    MismatchOrderBy,
    MismatchState,
    MismatchStatus,
    SortOrder,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
    SpotCheckRefType,
    mismatch_types_for,
)
from spotcheck.domain.model.errors import (
    InvalidArgumentError,
    InvalidReportError,
    MismatchNotFoundError,
    NotFoundError,
    PersistenceError,
    ReportNotFoundError,
    SpotCheckError,
)
from spotcheck.domain.model.keys import (
    AgendaKey,
    AgendaKeyCodec,
    BillKey,
    BillKeyCodec,
    CalendarKey,
    CalendarKeyCodec,
    ContentKey,
    ContentKeyCodec,
    codec_for,
    previous_versions_changed,
    session_year_of,
)
from spotcheck.domain.model.mismatch import (
    DeNormSpotCheckMismatch,
    MismatchIdentity,
    SpotCheckMismatch,
    SpotCheckObservation,
    SpotCheckReferenceId,
    SpotCheckReport,
)

__all__ = [  # noqa: RUF022
    # enums
    "IgnoreStatus",
    "MismatchOrderBy",
    "MismatchState",
    "MismatchStatus",
    "OPEN_STATES",
    "SortOrder",
    "SpotCheckContentType",
    "SpotCheckDataSource",
    "SpotCheckMismatchType",
    "SpotCheckRefType",
    "mismatch_types_for",
    # errors
    "InvalidArgumentError",
    "InvalidReportError",
    "MismatchNotFoundError",
    "NotFoundError",
    "PersistenceError",
    "ReportNotFoundError",
    "SpotCheckError",
    # keys
    "AgendaKey",
    "AgendaKeyCodec",
    "BillKey",
    "BillKeyCodec",
    "CalendarKey",
    "CalendarKeyCodec",
    "ContentKey",
    "ContentKeyCodec",
    "codec_for",
    "previous_versions_changed",
    "session_year_of",
    # mismatches
    "DeNormSpotCheckMismatch",
    "MismatchIdentity",
    "SpotCheckMismatch",
    "SpotCheckObservation",
    "SpotCheckReferenceId",
    "SpotCheckReport",
]
