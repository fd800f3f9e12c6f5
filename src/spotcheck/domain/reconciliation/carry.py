"""Carry curated state forward onto re-asserted mismatches.

Both stages match candidates against the prior open ledger by identity and
return new rows; inputs are never mutated.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

from spotcheck.domain.model import IgnoreStatus, MismatchState

if TYPE_CHECKING:
    from .contracts import LedgerIndex, LedgerRow


class CarryForward(Protocol):
    def __call__(self, candidates: list[LedgerRow], *, current: LedgerIndex) -> list[LedgerRow]: ...


def carry_annotations(candidates: list[LedgerRow], *, current: LedgerIndex) -> list[LedgerRow]:
    """Copy ignore status and issue ids from the matching open row.

    ``IGNORE_ONCE`` is consumed by the re-assertion and reverts to ``NOT_IGNORED``.
    """

    carried: list[LedgerRow] = []
    for candidate in candidates:
        prior = current.get(candidate.identity)
        if prior is None:
            carried.append(candidate)
            continue
        carried.append(
            replace(
                candidate,
                ignore_status=_reasserted_ignore_status(prior.ignore_status),
                issue_ids=candidate.issue_ids | prior.issue_ids,
            )
        )
    return carried


def carry_first_seen(candidates: list[LedgerRow], *, current: LedgerIndex) -> list[LedgerRow]:
    """Keep the original first-seen time and mark still-open identities ``EXISTING``."""

    carried: list[LedgerRow] = []
    for candidate in candidates:
        prior = current.get(candidate.identity)
        if prior is None:
            carried.append(candidate)
            continue
        carried.append(
            replace(
                candidate,
                first_seen_date_time=prior.first_seen_date_time,
                state=MismatchState.EXISTING,
            )
        )
    return carried


def _reasserted_ignore_status(status: IgnoreStatus) -> IgnoreStatus:
    if status is IgnoreStatus.IGNORE_ONCE:
        return IgnoreStatus.NOT_IGNORED
    return status
