"""Shared reconciliation contract components.

This module intentionally holds only:
- the ledger index alias keyed by mismatch identity
- the helper that builds that index from the prior open ledger
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from spotcheck.domain.model import (
        DeNormSpotCheckMismatch,
        MismatchIdentity,
        SpotCheckReport,
    )

log = logging.getLogger(__name__)

type LedgerRow = DeNormSpotCheckMismatch[Any]
type LedgerIndex = dict[MismatchIdentity, LedgerRow]


def index_open_ledger(
    current_open_ledger: Iterable[LedgerRow],
    *,
    report: SpotCheckReport[Any],
) -> LedgerIndex:
    """Index the open rows that share ``report``'s scope by identity.

    When the ledger holds several rows for one identity, the most recently
    reported one wins. Rows outside the report's datasource / content type, or
    already resolved, are ignored.
    """

    index: LedgerIndex = {}
    skipped = 0
    for row in current_open_ledger:
        if (
            not row.is_open
            or row.datasource != report.datasource
            or row.content_type != report.content_type
        ):
            skipped += 1
            continue
        held = index.get(row.identity)
        if held is None or _is_newer(row, held):
            index[row.identity] = row
    if skipped:
        log.debug("Ignored %s ledger rows outside the report scope", skipped)
    return index


def _is_newer(candidate: LedgerRow, held: LedgerRow) -> bool:
    if candidate.report_date_time != held.report_date_time:
        return candidate.report_date_time > held.report_date_time
    return (candidate.mismatch_id or 0) > (held.mismatch_id or 0)
