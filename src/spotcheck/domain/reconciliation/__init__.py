"""Reconciliation core for merging comparison passes into the mismatch ledger.

Layered flow:
1) flatten the report's observations into candidate rows
2) derive closures for open rows the report no longer asserts
3) carry ignore status and issue ids forward onto re-asserted rows
4) carry first-seen forward and mark re-asserted rows ``EXISTING``
5) return candidates + closures for the caller to append
"""

from __future__ import annotations

from .carry import carry_annotations, carry_first_seen
from .closure import derive_closures
from .contracts import LedgerIndex, LedgerRow, index_open_ledger
from .engine import ReconciliationEngine, ensure_reconcilable, reconcile
from .flatten import flatten_report

__all__ = [
    "LedgerIndex",
    "LedgerRow",
    "ReconciliationEngine",
    "carry_annotations",
    "carry_first_seen",
    "derive_closures",
    "ensure_reconcilable",
    "flatten_report",
    "index_open_ledger",
    "reconcile",
]
