"""Venue records: persistence, conflict resolution and operator routes."""

from barcompass.features.venues.repository import VenueRepository, VenueStore
from barcompass.features.venues.routes import router
from barcompass.features.venues.schemas import (
    ConflictResolution,
    OutcomeKind,
    ProposedAction,
    UpsertOutcome,
    VenueCreate,
    VenueResponse,
)
from barcompass.features.venues.upsert import UpsertEngine, resolve_fields

__all__ = [
    "ConflictResolution",
    "OutcomeKind",
    "ProposedAction",
    "UpsertEngine",
    "UpsertOutcome",
    "VenueCreate",
    "VenueRepository",
    "VenueResponse",
    "VenueStore",
    "resolve_fields",
    "router",
]
