"""Venue persistence.

``VenueStore`` is the narrow interface the upsert engine depends on;
``VenueRepository`` implements it (plus operator reads) over an AsyncSession.
Every write commits on its own so a failed record never takes earlier
records of the batch with it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import Executable, Result, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from barcompass.core.exceptions import ConflictError, DatabaseError, NotFoundError
from barcompass.core.logging import get_logger
from barcompass.features.venues.models import Venue
from barcompass.features.venues.schemas import (
    AuditTrail,
    VenueCreate,
    VenueResponse,
    VenueStats,
)

logger = get_logger(__name__)


@runtime_checkable
class VenueStore(Protocol):
    """Protocol for the venue operations the upsert engine needs."""

    async def exists_by_external_id(self, external_id: str) -> bool: ...

    async def get_by_external_id(self, external_id: str) -> VenueResponse | None: ...

    async def insert(self, record: VenueCreate) -> VenueResponse: ...

    async def update(self, external_id: str, values: dict[str, Any]) -> VenueResponse: ...

    async def verify(self, external_id: str, verified_by: str) -> VenueResponse: ...


class VenueRepository:
    """PostgreSQL-backed venue store.

    Args:
        db: Async session; one per batch, one write in flight.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _execute(
        self, stmt: Executable, operation: str, external_id: str | None = None
    ) -> Result[Any]:
        """Run a read; a driver failure rolls the session back and becomes ``DatabaseError``."""
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "venues.read_failed",
                operation=operation,
                external_id=external_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise DatabaseError(
                message=f"Failed to {operation} venues",
                details={"external_id": external_id, "error": str(e)},
            ) from e

    async def _get_model(self, external_id: str) -> Venue | None:
        stmt = select(Venue).where(Venue.external_id == external_id)
        result = await self._execute(stmt, "load", external_id)
        return result.scalar_one_or_none()

    async def _commit(self, venue: Venue, operation: str) -> VenueResponse:
        try:
            await self.db.commit()
            await self.db.refresh(venue)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "venues.write_failed",
                operation=operation,
                external_id=venue.external_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            error_class = ConflictError if isinstance(e, IntegrityError) else DatabaseError
            raise error_class(
                message=f"Failed to {operation} venue {venue.external_id}",
                details={"external_id": venue.external_id, "error": str(e)},
            ) from e
        return VenueResponse.model_validate(venue)

    # =========================================================================
    # VenueStore
    # =========================================================================

    async def exists_by_external_id(self, external_id: str) -> bool:
        stmt = select(Venue.id).where(Venue.external_id == external_id)
        result = await self._execute(stmt, "check", external_id)
        return result.scalar_one_or_none() is not None

    async def get_by_external_id(self, external_id: str) -> VenueResponse | None:
        venue = await self._get_model(external_id)
        return VenueResponse.model_validate(venue) if venue is not None else None

    async def insert(self, record: VenueCreate) -> VenueResponse:
        """Insert a new venue; ``external_id`` must not exist yet."""
        venue = Venue(
            **record.model_dump(mode="json"),
            is_verified=False,
            last_refreshed_at=datetime.now(UTC),
        )
        self.db.add(venue)
        response = await self._commit(venue, "insert")
        logger.info("venues.venue_inserted", external_id=record.external_id, name=record.name)
        return response

    async def update(self, external_id: str, values: dict[str, Any]) -> VenueResponse:
        """Apply resolved field values to an existing venue.

        Raises:
            NotFoundError: If the venue does not exist.
            DatabaseError: If the write fails.
        """
        venue = await self._get_model(external_id)
        if venue is None:
            raise NotFoundError(f"Venue not found: {external_id}")

        for field, value in values.items():
            setattr(venue, field, value)
        venue.last_refreshed_at = datetime.now(UTC)

        response = await self._commit(venue, "update")
        logger.info("venues.venue_updated", external_id=external_id, field_count=len(values))
        return response

    async def verify(self, external_id: str, verified_by: str) -> VenueResponse:
        """Mark a venue as verified by an operator."""
        venue = await self._get_model(external_id)
        if venue is None:
            raise NotFoundError(f"Venue not found: {external_id}")

        venue.is_verified = True
        venue.verified_by = verified_by
        venue.verified_at = datetime.now(UTC)

        response = await self._commit(venue, "verify")
        logger.info("venues.venue_verified", external_id=external_id, verified_by=verified_by)
        return response

    # =========================================================================
    # Operator reads
    # =========================================================================

    async def search(
        self,
        query: str | None = None,
        min_rating: float | None = None,
        max_rating: float | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[VenueResponse], int]:
        """Search venues by name or address and rating range.

        Returns:
            Tuple of (page of venues, total matching count).
        """
        stmt = select(Venue)
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(or_(Venue.name.ilike(pattern), Venue.formatted_address.ilike(pattern)))
        if min_rating is not None:
            stmt = stmt.where(Venue.rating >= min_rating)
        if max_rating is not None:
            stmt = stmt.where(Venue.rating <= max_rating)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._execute(count_stmt, "count")).scalar_one()

        stmt = stmt.order_by(Venue.rating.desc().nulls_last(), Venue.name).offset(offset).limit(limit)
        result = await self._execute(stmt, "search")
        venues = [VenueResponse.model_validate(v) for v in result.scalars().all()]
        return venues, total

    async def get_audit_trail(self, external_id: str) -> AuditTrail | None:
        venue = await self._get_model(external_id)
        return AuditTrail.model_validate(venue) if venue is not None else None

    async def get_stats(self) -> VenueStats:
        """Totals, verification split, provenance breakdown and mean rating."""
        totals_stmt = select(
            func.count(Venue.id),
            func.count(Venue.id).filter(Venue.is_verified.is_(True)),
            func.avg(Venue.rating),
        )
        total, verified, average = (await self._execute(totals_stmt, "summarize")).one()

        source_stmt = select(Venue.data_source, func.count(Venue.id)).group_by(Venue.data_source)
        source_rows = (await self._execute(source_stmt, "summarize")).all()
        by_source = {source: count for source, count in source_rows}

        return VenueStats(
            total=total,
            verified=verified,
            unverified=total - verified,
            by_data_source=by_source,
            average_rating=round(float(average), 2) if average is not None else None,
        )
