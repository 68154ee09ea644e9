"""Feature-specific test fixtures for venues."""

from datetime import UTC, datetime
from typing import Any

import pytest

from barcompass.core.exceptions import DatabaseError, NotFoundError
from barcompass.features.venues.schemas import (
    AuditTrail,
    VenueCreate,
    VenueResponse,
    VenueStats,
)


class InMemoryVenueStore:
    """Dict-backed VenueStore with the repository's read surface.

    Args:
        fail_on: External ids whose writes raise DatabaseError.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.rows: dict[str, VenueResponse] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_on = fail_on or set()
        self._next_id = 1

    def _check(self, operation: str, external_id: str) -> None:
        if external_id in self.fail_on:
            raise DatabaseError(f"Failed to {operation} venue {external_id}")
        self.writes.append((operation, external_id))

    async def exists_by_external_id(self, external_id: str) -> bool:
        return external_id in self.rows

    async def get_by_external_id(self, external_id: str) -> VenueResponse | None:
        return self.rows.get(external_id)

    async def insert(self, record: VenueCreate) -> VenueResponse:
        self._check("insert", record.external_id)
        if record.external_id in self.rows:
            raise DatabaseError(f"Duplicate external_id {record.external_id}")
        now = datetime.now(UTC)
        row = VenueResponse.model_validate(
            {
                **record.model_dump(mode="json"),
                "id": self._next_id,
                "is_verified": False,
                "created_at": now,
                "updated_at": now,
                "last_refreshed_at": now,
            }
        )
        self._next_id += 1
        self.rows[record.external_id] = row
        return row

    async def update(self, external_id: str, values: dict[str, Any]) -> VenueResponse:
        self._check("update", external_id)
        if external_id not in self.rows:
            raise NotFoundError(f"Venue not found: {external_id}")
        now = datetime.now(UTC)
        row = VenueResponse.model_validate(
            {**self.rows[external_id].model_dump(), **values, "updated_at": now, "last_refreshed_at": now}
        )
        self.rows[external_id] = row
        return row

    async def verify(self, external_id: str, verified_by: str) -> VenueResponse:
        self._check("verify", external_id)
        if external_id not in self.rows:
            raise NotFoundError(f"Venue not found: {external_id}")
        row = self.rows[external_id].model_copy(
            update={"is_verified": True, "verified_by": verified_by, "verified_at": datetime.now(UTC)}
        )
        self.rows[external_id] = row
        return row

    async def search(
        self,
        query: str | None = None,
        min_rating: float | None = None,
        max_rating: float | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[VenueResponse], int]:
        matches = [
            row
            for row in self.rows.values()
            if (not query or query.lower() in row.name.lower())
            and (min_rating is None or (row.rating is not None and row.rating >= min_rating))
            and (max_rating is None or (row.rating is not None and row.rating <= max_rating))
        ]
        matches.sort(key=lambda row: (-(row.rating or -1), row.name))
        return matches[offset : offset + limit], len(matches)

    async def get_audit_trail(self, external_id: str) -> AuditTrail | None:
        row = self.rows.get(external_id)
        return AuditTrail.model_validate(row.model_dump()) if row else None

    async def get_stats(self) -> VenueStats:
        rows = list(self.rows.values())
        verified = sum(1 for row in rows if row.is_verified)
        ratings = [row.rating for row in rows if row.rating is not None]
        by_source: dict[str, int] = {}
        for row in rows:
            by_source[row.data_source] = by_source.get(row.data_source, 0) + 1
        return VenueStats(
            total=len(rows),
            verified=verified,
            unverified=len(rows) - verified,
            by_data_source=by_source,
            average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
        )


@pytest.fixture
def store() -> InMemoryVenueStore:
    return InMemoryVenueStore()


@pytest.fixture
def sample_venue() -> VenueCreate:
    """A fully populated incoming venue."""
    return VenueCreate(
        external_id="ChIJ-bar-x",
        name="Bar X",
        main_text="Bar X",
        secondary_text="1 Wyndham St, Central",
        formatted_address="1 Wyndham St, Central, Hong Kong",
        lat=22.2808,
        lng=114.1557,
        phone_number="+852 2345 6789",
        international_phone_number="+852 2345 6789",
        website="https://barx.example",
        rating=4.5,
        rating_count=812,
        price_level=3,
        categories=["bar"],
        business_status="OPERATIONAL",
        opening_hours={"open_now": True, "weekday_text": ["Monday: 6:00 PM - 2:00 AM"]},
        timezone="Asia/Hong_Kong",
        tags=["speakeasy"],
    )
