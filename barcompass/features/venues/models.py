"""Venue ORM model.

One row per places-directory venue, keyed by the directory's stable place id.
Rows are never deleted by ingestion; re-ingesting supersedes field values.
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from barcompass.core.database import Base

# Fields the conflict resolver may change. Identity, verification and
# provenance columns are excluded.
MUTABLE_VENUE_FIELDS: tuple[str, ...] = (
    "name",
    "main_text",
    "secondary_text",
    "formatted_address",
    "lat",
    "lng",
    "phone_number",
    "international_phone_number",
    "website",
    "maps_url",
    "rating",
    "rating_count",
    "price_level",
    "categories",
    "business_status",
    "opening_hours",
    "timezone",
    "tags",
)


class Venue(Base):
    """Persisted venue record.

    Attributes:
        id: Primary key.
        external_id: Places-directory identifier (unique, immutable).
        opening_hours: Opening hours as JSONB (open_now, periods, weekday_text).
        categories: Directory category tags.
        tags: Operator-supplied manual tags.
        is_verified: Set by an operator through the verify endpoint.
        data_source: Provenance tag of the source that created the row.
        last_refreshed_at: When ingestion last wrote this row.
    """

    __tablename__ = "venue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)

    name: Mapped[str] = mapped_column(String(255), index=True)
    main_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    secondary_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    formatted_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Contact
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    international_phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    maps_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Ratings
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_level: Mapped[int | None] = mapped_column(Integer, nullable=True)

    categories: Mapped[list[str] | None] = mapped_column(ARRAY(String(100)), nullable=True)
    business_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    opening_hours: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String(100)), nullable=True)

    # Verification and provenance
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    verified_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    data_source: Mapped[str] = mapped_column(String(50), default="google_places", index=True)

    # Timestamps
    last_refreshed_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="rating_range"),
        CheckConstraint(
            "price_level IS NULL OR (price_level >= 0 AND price_level <= 4)",
            name="price_level_range",
        ),
        CheckConstraint(
            "business_status IS NULL OR business_status IN "
            "('OPERATIONAL', 'CLOSED_TEMPORARILY', 'CLOSED_PERMANENTLY')",
            name="valid_business_status",
        ),
        Index("ix_venue_rating", "rating"),
        Index("ix_venue_categories_gin", "categories", postgresql_using="gin"),
    )


def expected_index_names() -> set[str]:
    """Index names the venue table carries once migrated."""
    table = Venue.__table__
    return {
        str(index.name) if index.name else f"ix_{table.name}_{next(iter(index.columns)).name}"
        for index in table.indexes
    }


def expected_check_names() -> set[str]:
    """Check constraint names the venue table carries once migrated."""
    table = Venue.__table__
    prefix = f"ck_{table.name}_"
    names = {
        str(constraint.name)
        for constraint in table.constraints
        if isinstance(constraint, CheckConstraint) and constraint.name
    }
    return {name if name.startswith(prefix) else f"{prefix}{name}" for name in names}
