"""Conflict resolution and idempotent venue upserts."""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from barcompass.core.exceptions import DatabaseError
from barcompass.core.logging import get_logger
from barcompass.features.venues.models import MUTABLE_VENUE_FIELDS
from barcompass.features.venues.repository import VenueStore
from barcompass.features.venues.schemas import (
    ConflictResolution,
    ProposedAction,
    UpsertOutcome,
    VenueCreate,
    VenueResponse,
)

logger = get_logger(__name__)


def resolve_fields(
    existing: VenueResponse,
    incoming: VenueCreate,
    resolution: ConflictResolution,
) -> dict[str, Any]:
    """Compute the mutable field values to store for an existing venue.

    Args:
        existing: Record currently in the store.
        incoming: Newly normalized record for the same external_id.
        resolution: UPDATE, MERGE or REPLACE. SKIP returns no changes.

    Returns:
        Mapping of mutable field name to the value to persist. Identity,
        verification and provenance fields are never included.
    """
    if resolution == ConflictResolution.SKIP:
        return {}

    current = existing.model_dump(mode="json", include=set(MUTABLE_VENUE_FIELDS))
    proposed = incoming.model_dump(mode="json", include=set(MUTABLE_VENUE_FIELDS))

    if resolution == ConflictResolution.MERGE:
        return {
            field: proposed[field] if proposed[field] is not None else current[field]
            for field in MUTABLE_VENUE_FIELDS
        }

    if resolution == ConflictResolution.UPDATE:
        provided = incoming.model_fields_set
        return {
            field: proposed[field] if field in provided else current[field]
            for field in MUTABLE_VENUE_FIELDS
        }

    # REPLACE: absent fields fall back to their schema defaults
    return {field: proposed[field] for field in MUTABLE_VENUE_FIELDS}


class UpsertEngine:
    """Insert-or-reconcile single venue records against a ``VenueStore``.

    Persistence failures are returned as ``error`` outcomes, never raised,
    so a batch can continue past a bad record.
    """

    def __init__(self, store: VenueStore) -> None:
        self.store = store

    async def plan(self, record: VenueCreate, resolution: ConflictResolution) -> ProposedAction:
        """Decide what ``upsert`` would do, without writing."""
        if not await self.store.exists_by_external_id(record.external_id):
            return ProposedAction.INSERT
        if resolution == ConflictResolution.SKIP:
            return ProposedAction.SKIP
        return ProposedAction.UPDATE

    async def upsert(self, record: VenueCreate, resolution: ConflictResolution) -> UpsertOutcome:
        """Insert the record or reconcile it with the stored one.

        Args:
            record: Incoming normalized venue.
            resolution: Conflict policy for an existing record.

        Returns:
            ``inserted``, ``updated``, ``skipped`` or ``error`` outcome.
        """
        try:
            existing = await self.store.get_by_external_id(record.external_id)

            if existing is None:
                inserted = await self.store.insert(record)
                outcome = UpsertOutcome.inserted(inserted)
            elif resolution == ConflictResolution.SKIP:
                outcome = UpsertOutcome.skipped(record.external_id, existing)
            else:
                values = resolve_fields(existing, record, resolution)
                updated = await self.store.update(record.external_id, values)
                outcome = UpsertOutcome.updated(updated)
        except (DatabaseError, SQLAlchemyError) as e:
            logger.error(
                "venues.upsert_failed",
                external_id=record.external_id,
                resolution=resolution.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return UpsertOutcome.failed(record.external_id, e)

        logger.info(
            "venues.upsert_completed",
            external_id=record.external_id,
            resolution=resolution.value,
            outcome=outcome.kind.value,
        )
        return outcome
