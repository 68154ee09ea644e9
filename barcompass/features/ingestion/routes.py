"""Ingestion API routes for batch venue upserts."""

import time

from fastapi import APIRouter, Depends, status

from barcompass.core.logging import get_logger
from barcompass.features.ingestion.orchestrator import BatchOrchestrator
from barcompass.features.ingestion.schemas import IngestVenuesRequest, IngestVenuesResponse
from barcompass.features.venues.repository import VenueStore
from barcompass.features.venues.routes import get_venue_repository
from barcompass.features.venues.upsert import UpsertEngine

logger = get_logger(__name__)

router = APIRouter(prefix="/ingest", tags=["ingest"])


@router.post(
    "/venues",
    response_model=IngestVenuesResponse,
    status_code=status.HTTP_200_OK,
    summary="Batch upsert normalized venue records",
    description="""
Batch upsert venue records that were already normalized (for example by a
previous dry run or another ingestion host).

**Idempotency:** Records are keyed by `external_id`. Re-sending the same batch
with `merge` updates the stored venues rather than creating duplicates.

**Partial Success:** A record that fails to persist is reported as an `error`
outcome; the remaining records are still processed. `summary.errors` counts
them.
""",
)
async def ingest_venues(
    request: IngestVenuesRequest,
    store: VenueStore = Depends(get_venue_repository),
) -> IngestVenuesResponse:
    """Batch upsert venue records.

    Args:
        request: Records plus the conflict resolution to apply.
        store: Venue store bound to the request session.

    Returns:
        Summary, per-record outcomes and changeset.
    """
    start_time = time.perf_counter()

    logger.info(
        "ingestion.venues.request_received",
        record_count=len(request.records),
        resolution=request.resolution.value,
    )

    orchestrator = BatchOrchestrator(UpsertEngine(store), item_delay=0.0)
    result = await orchestrator.run(request.records, request.resolution)

    duration_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "ingestion.venues.request_completed",
        inserted=result.summary.inserted,
        updated=result.summary.updated,
        skipped=result.summary.skipped,
        errors=result.summary.errors,
        duration_ms=round(duration_ms, 2),
    )

    return IngestVenuesResponse(
        summary=result.summary,
        results=result.results,
        changes=result.changes,
        duration_ms=round(duration_ms, 2),
    )
