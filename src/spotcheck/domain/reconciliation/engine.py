"""Orchestrator for the reconciliation subsystem.

The engine merges one report's observations into the prior open ledger and
returns the rows to append. It performs no I/O; reading the open ledger and
writing the result belong to the caller's unit of work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from spotcheck.domain.model import InvalidReportError

from .carry import carry_annotations, carry_first_seen
from .closure import derive_closures
from .contracts import index_open_ledger
from .flatten import flatten_report

if TYPE_CHECKING:
    from collections.abc import Iterable

    from spotcheck.domain.model import SpotCheckReport

    from .carry import CarryForward
    from .closure import DeriveClosures
    from .contracts import LedgerRow
    from .flatten import FlattenReport

log = logging.getLogger(__name__)


def ensure_reconcilable(report: SpotCheckReport[Any]) -> int:
    """Return the id of ``report``, raising ``InvalidReportError`` unless it can be merged.

    A report must be recorded (and carry its id) before its mismatches are
    merged, and a report whose pass never produced observations must not be
    merged at all: treating it as "nothing wrong" would close every open row.
    """

    if report.id is None:
        raise InvalidReportError("Report must be saved and assigned an id before reconciling")
    if report.observations is None:
        raise InvalidReportError(f"Report {report.id} has no observations to reconcile")
    return report.id


@dataclass(slots=True)
class ReconciliationEngine:
    """Run the merge stages from flattened candidates to the appended row set."""

    flatten: FlattenReport = flatten_report
    close: DeriveClosures = derive_closures
    annotate: CarryForward = carry_annotations
    keep_first_seen: CarryForward = carry_first_seen

    def reconcile(
        self,
        report: SpotCheckReport[Any],
        current_open_ledger: Iterable[LedgerRow],
    ) -> list[LedgerRow]:
        """Return the ``NEW``/``EXISTING`` candidates followed by ``RESOLVED`` closures."""

        ensure_reconcilable(report)

        current = index_open_ledger(current_open_ledger, report=report)
        candidates = self.flatten(report)
        closures = self.close(report, candidates=candidates, current=current)
        candidates = self.annotate(candidates, current=current)
        candidates = self.keep_first_seen(candidates, current=current)

        log.debug(
            "Reconciled report %s: candidates=%s, closures=%s, prior_open=%s",
            report.id,
            len(candidates),
            len(closures),
            len(current),
        )
        return [*candidates, *closures]


_DEFAULT_ENGINE = ReconciliationEngine()


def reconcile(
    report: SpotCheckReport[Any],
    current_open_ledger: Iterable[LedgerRow],
) -> list[LedgerRow]:
    """Merge ``report`` into ``current_open_ledger`` with the default stages."""

    return _DEFAULT_ENGINE.reconcile(report, current_open_ledger)
