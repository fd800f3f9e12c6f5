"""Read-side rollups over active ledger rows.

Each summary is an immutable value folded from the rows the report store
returns for a session window. Derived totals (``open``, ``all``, ``total``)
are explicit fields rather than extra map entries.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from spotcheck.domain.model import (
    MismatchState,
    MismatchStatus,
    SpotCheckContentType,
    SpotCheckMismatchType,
    mismatch_types_for,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from spotcheck.domain.model import DeNormSpotCheckMismatch
    from spotcheck.domain.time_windows import MismatchWindow


@dataclass(frozen=True, slots=True)
class MismatchStatusSummary:
    counts: Mapping[MismatchState, int]
    open: int
    total: int

    def count(self, state: MismatchState) -> int:
        return self.counts[state]


@dataclass(frozen=True, slots=True)
class MismatchTypeSummary:
    content_type: SpotCheckContentType
    status: MismatchStatus
    counts: Mapping[SpotCheckMismatchType, int]
    all: int

    def count(self, mismatch_type: SpotCheckMismatchType) -> int:
        return self.counts.get(mismatch_type, 0)


@dataclass(frozen=True, slots=True)
class MismatchContentTypeSummary:
    counts: Mapping[SpotCheckContentType, int]
    total: int

    def count(self, content_type: SpotCheckContentType) -> int:
        return self.counts[content_type]


def summarize_status(rows: Iterable[DeNormSpotCheckMismatch[Any]]) -> MismatchStatusSummary:
    """Count rows per lifecycle state."""

    tally = Counter(row.state for row in rows)
    counts = {state: tally.get(state, 0) for state in MismatchState}
    return MismatchStatusSummary(
        counts=MappingProxyType(counts),
        open=counts[MismatchState.NEW] + counts[MismatchState.EXISTING],
        total=sum(counts.values()),
    )


def summarize_types(
    rows: Iterable[DeNormSpotCheckMismatch[Any]],
    *,
    content_type: SpotCheckContentType,
    status: MismatchStatus,
    window: MismatchWindow,
) -> MismatchTypeSummary:
    """Count rows per mismatch type for one content type and logical status.

    Every mismatch type of ``content_type`` appears in the result, zero-filled.
    """

    states = status.states
    tally = Counter(
        row.mismatch_type
        for row in rows
        if row.content_type == content_type
        and row.state in states
        and window.admits(observed=row.observed_date_time, first_seen=row.first_seen_date_time)
    )
    counts = dict.fromkeys(mismatch_types_for(content_type), 0)
    counts.update(tally)
    return MismatchTypeSummary(
        content_type=content_type,
        status=status,
        counts=MappingProxyType(counts),
        all=sum(counts.values()),
    )


def summarize_content_types(
    rows: Iterable[DeNormSpotCheckMismatch[Any]],
) -> MismatchContentTypeSummary:
    tally = Counter(row.content_type for row in rows)
    counts = {content_type: tally.get(content_type, 0) for content_type in SpotCheckContentType}
    return MismatchContentTypeSummary(counts=MappingProxyType(counts), total=sum(counts.values()))


__all__ = [
    "MismatchContentTypeSummary",
    "MismatchStatusSummary",
    "MismatchTypeSummary",
    "summarize_content_types",
    "summarize_status",
    "summarize_types",
]
