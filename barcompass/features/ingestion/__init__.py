"""Ingestion feature module: batch orchestration of venue upserts."""

from barcompass.features.ingestion.orchestrator import (
    BatchOrchestrator,
    IngestionAborted,
    build_venue_create,
)
from barcompass.features.ingestion.routes import router
from barcompass.features.ingestion.schemas import (
    BatchSummary,
    BatchUpsertResult,
    ConfirmDecision,
    IngestionReport,
    VenueInput,
)

__all__ = [
    "BatchOrchestrator",
    "BatchSummary",
    "BatchUpsertResult",
    "ConfirmDecision",
    "IngestionAborted",
    "IngestionReport",
    "VenueInput",
    "build_venue_create",
    "router",
]
