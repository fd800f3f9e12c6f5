"""Value types for comparison passes and the persisted mismatch ledger."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import (
    OPEN_STATES,
    IgnoreStatus,
    MismatchState,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
    SpotCheckRefType,
)

if TYPE_CHECKING:
    from datetime import datetime


type MismatchIdentity = tuple[Hashable, SpotCheckMismatchType, SpotCheckDataSource]


@dataclass(frozen=True, slots=True)
class SpotCheckReferenceId:
    """Identifies the reference snapshot (type + effective time) a pass compared."""

    reference_type: SpotCheckRefType
    reference_date_time: datetime


@dataclass(slots=True, kw_only=True)
class SpotCheckMismatch:
    """One discrepancy for one key within one observation."""

    mismatch_type: SpotCheckMismatchType
    reference_data: str = ""
    observed_data: str = ""
    notes: str | None = None
    issue_ids: set[str] = field(default_factory=set[str])
    ignore_status: IgnoreStatus = IgnoreStatus.NOT_IGNORED


@dataclass(kw_only=True)
class SpotCheckObservation[K: Hashable]:
    """All mismatches found for one key in one comparison pass."""

    key: K
    reference_id: SpotCheckReferenceId
    observed_date_time: datetime
    mismatches: dict[SpotCheckMismatchType, SpotCheckMismatch] = field(
        default_factory=dict["SpotCheckMismatchType", "SpotCheckMismatch"]
    )

    def add_mismatch(self, mismatch: SpotCheckMismatch) -> None:
        self.mismatches[mismatch.mismatch_type] = mismatch


@dataclass(kw_only=True)
class SpotCheckReport[K: Hashable]:
    """One comparison pass.

    ``observations`` stays ``None`` when the pass failed before any comparison
    ran. An empty mapping means the pass ran and found nothing wrong; the two
    cases reconcile very differently.
    """

    reference_type: SpotCheckRefType
    report_date_time: datetime
    reference_date_time: datetime
    notes: str | None = None
    id: int | None = None
    observations: dict[K, SpotCheckObservation[K]] | None = None

    @property
    def datasource(self) -> SpotCheckDataSource:
        return self.reference_type.datasource

    @property
    def content_type(self) -> SpotCheckContentType:
        return self.reference_type.content_type

    def add_observation(self, observation: SpotCheckObservation[K]) -> None:
        if self.observations is None:
            self.observations = {}
        self.observations[observation.key] = observation


@dataclass(kw_only=True)
class DeNormSpotCheckMismatch[K: Hashable]:
    """A persisted ledger row.

    ``(key, mismatch_type, datasource)`` names the tracked discrepancy but is not
    unique across time; each report appends a fresh row. ``mismatch_id`` is the
    store-assigned row identity and is ``None`` until persisted.
    """

    key: K
    mismatch_type: SpotCheckMismatchType
    datasource: SpotCheckDataSource
    content_type: SpotCheckContentType
    reference_id: SpotCheckReferenceId
    report_date_time: datetime
    observed_date_time: datetime
    first_seen_date_time: datetime
    state: MismatchState = MismatchState.NEW
    report_id: int | None = None
    mismatch_id: int | None = None
    reference_data: str = ""
    observed_data: str = ""
    notes: str | None = None
    issue_ids: set[str] = field(default_factory=set[str])
    ignore_status: IgnoreStatus = IgnoreStatus.NOT_IGNORED

    @property
    def identity(self) -> MismatchIdentity:
        return (self.key, self.mismatch_type, self.datasource)

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES
