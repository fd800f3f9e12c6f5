"""Create report and mismatch ledger tables.

Revision ID: 0001_spotcheck_ledger
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from spotcheck.adapters.sqlalchemy.mappings import (
    ContentKeyMapType,
    IssueIdSetType,
    UTCDateTime,
)
from spotcheck.domain.model import (
    IgnoreStatus,
    MismatchState,
    SpotCheckContentType,
    SpotCheckDataSource,
    SpotCheckMismatchType,
    SpotCheckRefType,
)

revision = "0001_spotcheck_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "spotcheck_report",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "reference_type", sa.Enum(SpotCheckRefType, native_enum=False), nullable=False
        ),
        sa.Column("report_date_time", UTCDateTime(), nullable=False),
        sa.Column("reference_date_time", UTCDateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_spotcheck_report")),
    )
    op.create_table(
        "spotcheck_mismatch",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", ContentKeyMapType(), nullable=False),
        sa.Column(
            "mismatch_type", sa.Enum(SpotCheckMismatchType, native_enum=False), nullable=False
        ),
        sa.Column("datasource", sa.Enum(SpotCheckDataSource, native_enum=False), nullable=False),
        sa.Column(
            "content_type", sa.Enum(SpotCheckContentType, native_enum=False), nullable=False
        ),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column(
            "reference_type", sa.Enum(SpotCheckRefType, native_enum=False), nullable=False
        ),
        sa.Column("reference_active_date_time", UTCDateTime(), nullable=False),
        sa.Column("state", sa.Enum(MismatchState, native_enum=False), nullable=False),
        sa.Column("reference_data", sa.Text(), nullable=False),
        sa.Column("observed_data", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("issue_ids", IssueIdSetType(), nullable=False),
        sa.Column("ignore_status", sa.Enum(IgnoreStatus, native_enum=False), nullable=False),
        sa.Column("report_date_time", UTCDateTime(), nullable=False),
        sa.Column("observed_date_time", UTCDateTime(), nullable=False),
        sa.Column("first_seen_date_time", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["report_id"],
            ["spotcheck_report.id"],
            name=op.f("fk_spotcheck_mismatch_report_id_spotcheck_report"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_spotcheck_mismatch")),
    )
    op.create_index(
        "ix_spotcheck_mismatch_identity",
        "spotcheck_mismatch",
        ["key", "mismatch_type", "datasource", "report_date_time"],
    )
    op.create_index(
        "ix_spotcheck_mismatch_scope",
        "spotcheck_mismatch",
        ["datasource", "content_type", "report_date_time"],
    )
    op.create_index("ix_spotcheck_mismatch_report_id", "spotcheck_mismatch", ["report_id"])


def downgrade() -> None:
    op.drop_index("ix_spotcheck_mismatch_report_id", table_name="spotcheck_mismatch")
    op.drop_index("ix_spotcheck_mismatch_scope", table_name="spotcheck_mismatch")
    op.drop_index("ix_spotcheck_mismatch_identity", table_name="spotcheck_mismatch")
    op.drop_table("spotcheck_mismatch")
    op.drop_table("spotcheck_report")
