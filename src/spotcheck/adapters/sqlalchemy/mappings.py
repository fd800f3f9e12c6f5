"""SQLAlchemy table metadata for reports and the mismatch ledger."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from spotcheck.domain.model import (
    IgnoreStatus,
    MismatchState,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
    SpotCheckRefType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class IssueIdSetType(TypeDecorator[set[str]]):
    """Store a set of issue ids as a sorted JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: set[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(sorted(value or ()))

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[str]:
        _ = dialect
        if not value:
            return set()
        data = json.loads(value)
        if not isinstance(data, list):
            return set()
        return {str(item) for item in data}  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]


class ContentKeyMapType(TypeDecorator[dict[str, str]]):
    """Store a content key's field map as canonical JSON.

    Keys are sorted and separators fixed so equal keys always produce the same
    text; the ledger partitions and compares on this column.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value: dict[str, str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, sort_keys=True, separators=(",", ":"))

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, str] | None:
        _ = dialect
        if value is None:
            return None
        data: Any = json.loads(value)
        if not isinstance(data, dict):
            raise ValueError(f"Stored content key is not a mapping: {value!r}")
        return {str(field): str(item) for field, item in data.items()}  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Core tables -----------------------------------------------------------------

spotcheck_report_table = Table(
    "spotcheck_report",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference_type", Enum(SpotCheckRefType, native_enum=False), nullable=False),
    Column("report_date_time", UTCDateTime(), nullable=False),
    Column("reference_date_time", UTCDateTime(), nullable=False),
    Column("notes", Text, nullable=True),
)

spotcheck_mismatch_table = Table(
    "spotcheck_mismatch",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("key", ContentKeyMapType(), nullable=False),
    Column("mismatch_type", Enum(SpotCheckMismatchType, native_enum=False), nullable=False),
    Column("datasource", Enum(SpotCheckDataSource, native_enum=False), nullable=False),
    Column("content_type", Enum(SpotCheckContentType, native_enum=False), nullable=False),
    Column(
        "report_id",
        Integer,
        ForeignKey("spotcheck_report.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("reference_type", Enum(SpotCheckRefType, native_enum=False), nullable=False),
    Column("reference_active_date_time", UTCDateTime(), nullable=False),
    Column("state", Enum(MismatchState, native_enum=False), nullable=False),
    Column("reference_data", Text, nullable=False, default=""),
    Column("observed_data", Text, nullable=False, default=""),
    Column("notes", Text, nullable=True),
    Column("issue_ids", IssueIdSetType(), nullable=False, default=set),
    Column(
        "ignore_status",
        Enum(IgnoreStatus, native_enum=False),
        nullable=False,
        default=IgnoreStatus.NOT_IGNORED,
    ),
    Column("report_date_time", UTCDateTime(), nullable=False),
    Column("observed_date_time", UTCDateTime(), nullable=False),
    Column("first_seen_date_time", UTCDateTime(), nullable=False),
    Index(
        "ix_spotcheck_mismatch_identity",
        "key",
        "mismatch_type",
        "datasource",
        "report_date_time",
    ),
    Index("ix_spotcheck_mismatch_scope", "datasource", "content_type", "report_date_time"),
    Index("ix_spotcheck_mismatch_report_id", "report_id"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the ledger metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
