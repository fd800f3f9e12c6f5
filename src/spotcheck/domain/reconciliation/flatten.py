"""Flatten a report's observations into candidate ledger rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from spotcheck.domain.model import (
    DeNormSpotCheckMismatch,
    InvalidReportError,
    MismatchState,
    codec_for,
)

if TYPE_CHECKING:
    from spotcheck.domain.model import SpotCheckReport

    from .contracts import LedgerRow


class FlattenReport(Protocol):
    """Expand a report into one candidate row per ``(key, mismatch_type)``."""

    def __call__(self, report: SpotCheckReport[Any]) -> list[LedgerRow]: ...


def flatten_report(report: SpotCheckReport[Any]) -> list[LedgerRow]:
    """Return provisional ``NEW`` rows for every mismatch the report asserts.

    Rows are ordered by the key's field map, then mismatch type, so equal
    reports always yield the same sequence. First-seen starts out equal to the
    observation time; carry-forward stages replace it for identities that were
    already open.
    """

    if report.observations is None:
        raise InvalidReportError("Report observations have not been set")

    candidates: list[LedgerRow] = []
    for observation in report.observations.values():
        for mismatch in observation.mismatches.values():
            candidates.append(
                DeNormSpotCheckMismatch(
                    key=observation.key,
                    mismatch_type=mismatch.mismatch_type,
                    datasource=report.datasource,
                    content_type=report.content_type,
                    reference_id=observation.reference_id,
                    report_date_time=report.report_date_time,
                    observed_date_time=observation.observed_date_time,
                    first_seen_date_time=observation.observed_date_time,
                    state=MismatchState.NEW,
                    report_id=report.id,
                    reference_data=mismatch.reference_data,
                    observed_data=mismatch.observed_data,
                    notes=mismatch.notes,
                    issue_ids=set(mismatch.issue_ids),
                    ignore_status=mismatch.ignore_status,
                )
            )
    codec = codec_for(report.content_type)
    candidates.sort(
        key=lambda row: (sorted(codec.to_map(row.key).items()), row.mismatch_type.value)
    )
    return candidates
