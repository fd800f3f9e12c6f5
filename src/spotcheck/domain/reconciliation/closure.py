"""Derive resolution rows for open mismatches a report no longer asserts.

Ignore status governs visibility, not lifecycle: ignored rows close like any
other. ``IGNORE_UNTIL_RESOLVED`` is spent once the row resolves.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

from spotcheck.domain.model import IgnoreStatus, MismatchState

if TYPE_CHECKING:
    from spotcheck.domain.model import SpotCheckReport

    from .contracts import LedgerIndex, LedgerRow


class DeriveClosures(Protocol):
    def __call__(
        self,
        report: SpotCheckReport[Any],
        *,
        candidates: list[LedgerRow],
        current: LedgerIndex,
    ) -> list[LedgerRow]: ...


def derive_closures(
    report: SpotCheckReport[Any],
    *,
    candidates: list[LedgerRow],
    current: LedgerIndex,
) -> list[LedgerRow]:
    """Return one ``RESOLVED`` row per open identity absent from ``candidates``."""

    asserted = {candidate.identity for candidate in candidates}
    observations = report.observations or {}

    closures: list[LedgerRow] = []
    for identity, prior in current.items():
        if identity in asserted:
            continue
        observation = observations.get(prior.key)
        closures.append(
            replace(
                prior,
                mismatch_id=None,
                state=MismatchState.RESOLVED,
                report_id=report.id,
                report_date_time=report.report_date_time,
                reference_id=(
                    observation.reference_id if observation is not None else prior.reference_id
                ),
                observed_date_time=(
                    observation.observed_date_time
                    if observation is not None
                    else report.report_date_time
                ),
                issue_ids=set(prior.issue_ids),
                ignore_status=_resolved_ignore_status(prior.ignore_status),
            )
        )
    return closures


def _resolved_ignore_status(status: IgnoreStatus) -> IgnoreStatus:
    if status is IgnoreStatus.IGNORE_UNTIL_RESOLVED:
        return IgnoreStatus.NOT_IGNORED
    return status
