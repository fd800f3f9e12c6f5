"""Session and report windows that bound ledger lookups.

All ledger reads are scoped to the legislative session containing the report
date, up to the last instant of that date. Logical statuses narrow this
further into observed / first-seen ranges.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol

from spotcheck.domain.model import MismatchStatus, session_year_of


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Time window values must include timezone information")
    return value.astimezone(UTC)


def today(*, clock: Clock = _utcnow) -> date:
    """Return the current UTC date according to ``clock``."""

    return _ensure_aware(clock()).date()


def session_start(report_date: date) -> datetime:
    """Return the first instant of the session containing ``report_date``."""

    return datetime(session_year_of(report_date.year), 1, 1, tzinfo=UTC)


def report_start(report_date: date) -> datetime:
    return datetime.combine(report_date, time.min, tzinfo=UTC)


def report_end(report_date: date) -> datetime:
    return datetime.combine(report_date, time.max, tzinfo=UTC)


@dataclass(frozen=True)
class SessionWindow:
    """Inclusive report-time bounds for ledger reads."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = _ensure_aware(self.start)
        end = _ensure_aware(self.end)
        if start > end:
            raise ValueError("Time window start must be before end")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)


def session_window(report_date: date) -> SessionWindow:
    """Return the window from session start through the end of ``report_date``."""

    return SessionWindow(start=session_start(report_date), end=report_end(report_date))


@dataclass(frozen=True)
class MismatchWindow:
    """Observed and first-seen bounds for one logical status on one report date."""

    observed_start: datetime
    observed_end: datetime
    first_seen_start: datetime
    first_seen_end: datetime

    @classmethod
    def for_status(cls, status: MismatchStatus, report_date: date) -> MismatchWindow:
        day_start = report_start(report_date)
        day_end = report_end(report_date)
        session = session_start(report_date)

        match status:
            case MismatchStatus.NEW:
                return cls(
                    observed_start=day_start,
                    observed_end=day_end,
                    first_seen_start=day_start,
                    first_seen_end=day_end,
                )
            case MismatchStatus.EXISTING:
                return cls(
                    observed_start=day_start,
                    observed_end=day_end,
                    first_seen_start=session,
                    first_seen_end=day_start - timedelta(microseconds=1),
                )
            case MismatchStatus.RESOLVED:
                return cls(
                    observed_start=day_start,
                    observed_end=day_end,
                    first_seen_start=session,
                    first_seen_end=day_end,
                )
            case MismatchStatus.OPEN:
                return cls(
                    observed_start=session,
                    observed_end=day_end,
                    first_seen_start=session,
                    first_seen_end=day_end,
                )
        raise ValueError(f"Unsupported mismatch status: {status}")

    def admits(self, *, observed: datetime, first_seen: datetime) -> bool:
        return (
            self.observed_start <= observed <= self.observed_end
            and self.first_seen_start <= first_seen <= self.first_seen_end
        )


__all__ = [
    "Clock",
    "MismatchWindow",
    "SessionWindow",
    "report_end",
    "report_start",
    "session_start",
    "session_window",
    "today",
]
