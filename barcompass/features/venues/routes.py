"""Operator API routes for venue records."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from barcompass.core.database import get_db
from barcompass.core.exceptions import NotFoundError
from barcompass.core.logging import get_logger
from barcompass.features.venues.repository import VenueRepository
from barcompass.features.venues.schemas import (
    AuditTrail,
    VenueResponse,
    VenueStats,
    VerifyRequest,
)
from barcompass.shared.schemas import Page, PageQuery

logger = get_logger(__name__)

router = APIRouter(prefix="/venues", tags=["venues"])


def get_venue_repository(db: AsyncSession = Depends(get_db)) -> VenueRepository:
    """Dependency providing a repository bound to the request session."""
    return VenueRepository(db)


@router.get(
    "",
    response_model=Page[VenueResponse],
    summary="Search venues",
)
async def search_venues(
    paging: Annotated[PageQuery, Query()],
    q: str | None = Query(None, max_length=100, description="Name or address substring"),
    min_rating: float | None = Query(None, ge=0, le=5),
    max_rating: float | None = Query(None, ge=0, le=5),
    repository: VenueRepository = Depends(get_venue_repository),
) -> Page[VenueResponse]:
    """Search venues ordered by rating (highest first), then name."""
    venues, total = await repository.search(
        query=q,
        min_rating=min_rating,
        max_rating=max_rating,
        offset=paging.offset,
        limit=paging.page_size,
    )
    logger.info("venues.search_completed", query=q, total=total, page=paging.page)
    return Page[VenueResponse](
        items=venues, total=total, page=paging.page, page_size=paging.page_size
    )


@router.get("/stats", response_model=VenueStats, summary="Venue store statistics")
async def get_venue_stats(
    repository: VenueRepository = Depends(get_venue_repository),
) -> VenueStats:
    return await repository.get_stats()


@router.get("/{external_id}", response_model=VenueResponse, summary="Get a venue")
async def get_venue(
    external_id: str,
    repository: VenueRepository = Depends(get_venue_repository),
) -> VenueResponse:
    """Fetch one venue by its places-directory id.

    Raises:
        NotFoundError: If no venue has this id.
    """
    venue = await repository.get_by_external_id(external_id)
    if venue is None:
        raise NotFoundError(f"Venue not found: {external_id}")
    return venue


@router.get("/{external_id}/audit", response_model=AuditTrail, summary="Venue audit trail")
async def get_venue_audit(
    external_id: str,
    repository: VenueRepository = Depends(get_venue_repository),
) -> AuditTrail:
    trail = await repository.get_audit_trail(external_id)
    if trail is None:
        raise NotFoundError(f"Venue not found: {external_id}")
    return trail


@router.post(
    "/{external_id}/verify",
    response_model=VenueResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark a venue as verified",
)
async def verify_venue(
    external_id: str,
    request: VerifyRequest,
    repository: VenueRepository = Depends(get_venue_repository),
) -> VenueResponse:
    """Record operator verification. Verification is never changed by ingestion."""
    return await repository.verify(external_id, request.verified_by)
