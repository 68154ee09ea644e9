"""create_venue_table

Revision ID: e1a4c7b20f31
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "e1a4c7b20f31"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Apply migration - create venue table."""
    op.create_table(
        "venue",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("main_text", sa.String(length=255), nullable=True),
        sa.Column("secondary_text", sa.String(length=500), nullable=True),
        sa.Column("formatted_address", sa.String(length=500), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        # Contact
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column("international_phone_number", sa.String(length=50), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("maps_url", sa.String(length=500), nullable=True),
        # Ratings
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("rating_count", sa.Integer(), nullable=True),
        sa.Column("price_level", sa.Integer(), nullable=True),
        # Classification and hours
        sa.Column("categories", postgresql.ARRAY(sa.String(length=100)), nullable=True),
        sa.Column("business_status", sa.String(length=30), nullable=True),
        sa.Column("opening_hours", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(length=100)), nullable=True),
        # Verification and provenance
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_by", sa.String(length=100), nullable=True),
        sa.Column(
            "data_source", sa.String(length=50), nullable=False, server_default="google_places"
        ),
        sa.Column("last_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_venue_rating_range"
        ),
        sa.CheckConstraint(
            "price_level IS NULL OR (price_level >= 0 AND price_level <= 4)",
            name="ck_venue_price_level_range",
        ),
        sa.CheckConstraint(
            "business_status IS NULL OR business_status IN "
            "('OPERATIONAL', 'CLOSED_TEMPORARILY', 'CLOSED_PERMANENTLY')",
            name="ck_venue_valid_business_status",
        ),
    )

    op.create_index(op.f("ix_venue_external_id"), "venue", ["external_id"], unique=True)
    op.create_index(op.f("ix_venue_name"), "venue", ["name"], unique=False)
    op.create_index(op.f("ix_venue_data_source"), "venue", ["data_source"], unique=False)
    op.create_index("ix_venue_rating", "venue", ["rating"], unique=False)
    op.create_index(
        "ix_venue_categories_gin",
        "venue",
        ["categories"],
        unique=False,
        postgresql_using="gin",
    )


def downgrade() -> None:
    """Revert migration - drop venue table."""
    op.drop_index("ix_venue_categories_gin", table_name="venue")
    op.drop_index("ix_venue_rating", table_name="venue")
    op.drop_index(op.f("ix_venue_data_source"), table_name="venue")
    op.drop_index(op.f("ix_venue_name"), table_name="venue")
    op.drop_index(op.f("ix_venue_external_id"), table_name="venue")
    op.drop_table("venue")
