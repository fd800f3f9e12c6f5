"""Content keys: domain identities that correlate observations across reports.

The reconciliation engine treats keys as opaque hashable values. Each content
domain ships a codec that converts its key to and from a flat ``str -> str``
map, which is the representation the report store persists and queries on.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

from .enums import SpotCheckContentType

type ContentKey = Hashable


@runtime_checkable
class ContentKeyCodec[K: Hashable](Protocol):
    """Lossless conversion between a content key and its attribute map."""

    def to_map(self, key: K) -> dict[str, str]: ...

    def from_map(self, values: Mapping[str, str]) -> K: ...


def _require(values: Mapping[str, str], field: str) -> str:
    value = values.get(field)
    if value is None or not value.strip():
        raise ValueError(f"Content key map is missing '{field}'")
    return value


def _require_int(values: Mapping[str, str], field: str) -> int:
    raw = _require(values, field)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Content key field '{field}' is not an integer: {raw!r}") from exc


def session_year_of(year: int) -> int:
    """Return the first (odd) year of the two-year session containing ``year``."""

    return year if year % 2 == 1 else year - 1


@dataclass(frozen=True, slots=True)
class BillKey:
    """Base print number within a legislative session, e.g. ``S1234`` / 2017."""

    print_no: str
    session_year: int

    def __post_init__(self) -> None:
        if not self.print_no.strip():
            raise ValueError("print_no must not be blank")
        if self.session_year != session_year_of(self.session_year):
            raise ValueError("session_year must be the odd year a session starts in")


@dataclass(frozen=True, slots=True)
class CalendarKey:
    cal_no: int
    year: int


@dataclass(frozen=True, slots=True)
class AgendaKey:
    agenda_no: int
    year: int
    committee: str


class BillKeyCodec:
    def to_map(self, key: BillKey) -> dict[str, str]:
        return {"print_no": key.print_no, "session_year": str(key.session_year)}

    def from_map(self, values: Mapping[str, str]) -> BillKey:
        return BillKey(
            print_no=_require(values, "print_no"),
            session_year=_require_int(values, "session_year"),
        )


class CalendarKeyCodec:
    def to_map(self, key: CalendarKey) -> dict[str, str]:
        return {"cal_no": str(key.cal_no), "year": str(key.year)}

    def from_map(self, values: Mapping[str, str]) -> CalendarKey:
        return CalendarKey(
            cal_no=_require_int(values, "cal_no"),
            year=_require_int(values, "year"),
        )


class AgendaKeyCodec:
    def to_map(self, key: AgendaKey) -> dict[str, str]:
        return {
            "agenda_no": str(key.agenda_no),
            "year": str(key.year),
            "committee": key.committee,
        }

    def from_map(self, values: Mapping[str, str]) -> AgendaKey:
        return AgendaKey(
            agenda_no=_require_int(values, "agenda_no"),
            year=_require_int(values, "year"),
            committee=_require(values, "committee"),
        )


CODECS_BY_CONTENT_TYPE: Final[dict[SpotCheckContentType, ContentKeyCodec[Any]]] = {
    SpotCheckContentType.BILL: BillKeyCodec(),
    SpotCheckContentType.CALENDAR: CalendarKeyCodec(),
    SpotCheckContentType.AGENDA: AgendaKeyCodec(),
}


def codec_for(content_type: SpotCheckContentType) -> ContentKeyCodec[Any]:
    """Return the key codec registered for ``content_type``."""

    try:
        return CODECS_BY_CONTENT_TYPE[content_type]
    except KeyError as exc:
        raise ValueError(f"No content key codec registered for {content_type}") from exc


def previous_versions_changed(existing: Iterable[BillKey], incoming: Iterable[BillKey]) -> bool:
    """Return whether a bill's stored prior versions differ from the incoming set.

    Callers replace the stored prior versions only when this returns ``True``.
    """

    return set(existing) != set(incoming)


if TYPE_CHECKING:
    _bill_codec_check: ContentKeyCodec[BillKey] = BillKeyCodec()
    _calendar_codec_check: ContentKeyCodec[CalendarKey] = CalendarKeyCodec()
    _agenda_codec_check: ContentKeyCodec[AgendaKey] = AgendaKeyCodec()
