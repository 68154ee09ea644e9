"""Batch orchestration: resolve inputs, confirm, upsert, summarize.

A run is strictly sequential. The only suspension points are the places
client's rate limiter and backoff sleeps, its courtesy delay between detail
calls, and the inter-item delay here.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable, Sequence

from barcompass.core.config import Settings, get_settings
from barcompass.core.logging import get_logger, run_id_ctx
from barcompass.features.ingestion.confirmation import (
    BatchConfirmCallback,
    ConfirmCallback,
    calculate_completeness,
)
from barcompass.features.ingestion.schemas import (
    BatchConfirmationRequest,
    BatchDecision,
    BatchSummary,
    BatchUpsertResult,
    ConfirmationRequest,
    ConfirmDecision,
    IngestionReport,
    PlannedAction,
    UnresolvedInput,
    VenueInput,
)
from barcompass.features.places.client import PlacesApiError, PlacesClient
from barcompass.features.places.normalize import PlacesPayloadError
from barcompass.features.places.schemas import RawVenueDetails
from barcompass.features.venues.schemas import (
    Changeset,
    ConflictResolution,
    UpsertOutcome,
    VenueCreate,
)
from barcompass.features.venues.upsert import UpsertEngine

logger = get_logger(__name__)


class IngestionAborted(Exception):
    """The operator quit the run from a confirmation prompt."""

    def __init__(self, processed: int) -> None:
        super().__init__(f"Ingestion aborted by operator after {processed} record(s)")
        self.processed = processed


def build_venue_create(
    details: RawVenueDetails,
    timezone: str | None = None,
    tags: Sequence[str] = (),
) -> VenueCreate:
    """Turn normalized directory details into an incoming venue record."""
    return VenueCreate(
        **details.model_dump(exclude={"photos", "reviews"}),
        timezone=timezone,
        tags=list(tags) or None,
    )


class BatchOrchestrator:
    """Drive a batch of venues through the upsert engine.

    Args:
        engine: Upsert engine bound to the venue store.
        client: Places client; required only for ``ingest``.
        item_delay: Seconds between records; defaults to settings.
        sleep: Awaitable sleep for the inter-item delay.
        settings: Application settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        engine: UpsertEngine,
        client: PlacesClient | None = None,
        item_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.engine = engine
        self.client = client
        self.item_delay = (
            item_delay if item_delay is not None else self.settings.ingest_item_delay_seconds
        )
        self._sleep = sleep

    async def _confirm(
        self,
        record: VenueCreate,
        resolution: ConflictResolution,
        confirm: ConfirmCallback,
    ) -> ConfirmDecision:
        request = ConfirmationRequest(
            record=record,
            proposed_action=await self.engine.plan(record, resolution),
            completeness=calculate_completeness(record),
        )
        while True:
            decision = confirm(request)
            if decision == ConfirmDecision.SHOW_MORE:
                request = request.model_copy(update={"show_details": True})
                continue
            return decision

    async def run(
        self,
        records: Sequence[VenueCreate],
        resolution: ConflictResolution,
        confirm: ConfirmCallback | None = None,
    ) -> BatchUpsertResult:
        """Upsert records one at a time and fold the outcomes.

        Per-record failures become ``error`` outcomes and the batch continues.

        Args:
            records: Normalized venues, processed in order.
            resolution: Conflict policy applied to existing venues.
            confirm: Optional per-record confirmation callback.

        Returns:
            Outcomes, summary and aggregated changeset.

        Raises:
            IngestionAborted: The operator chose to quit.
        """
        summary = BatchSummary(total=len(records))
        changes = Changeset()
        results: list[UpsertOutcome] = []

        logger.info(
            "ingestion.batch_started",
            total=len(records),
            resolution=resolution.value,
            interactive=confirm is not None,
        )

        for index, record in enumerate(records):
            if index > 0 and self.item_delay > 0:
                await self._sleep(self.item_delay)

            try:
                decision = ConfirmDecision.PROCEED
                if confirm is not None:
                    decision = await self._confirm(record, resolution, confirm)
                if decision == ConfirmDecision.QUIT:
                    raise IngestionAborted(processed=index)
                if decision == ConfirmDecision.SKIP:
                    logger.info("ingestion.record_declined", external_id=record.external_id)
                    outcome = UpsertOutcome.skipped(record.external_id)
                else:
                    outcome = await self.engine.upsert(record, resolution)
            except IngestionAborted:
                logger.warning("ingestion.batch_aborted", processed=index, total=len(records))
                raise
            except Exception as e:
                logger.error(
                    "ingestion.record_failed",
                    external_id=record.external_id,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                outcome = UpsertOutcome.failed(record.external_id, e)

            results.append(outcome)
            changes.absorb(outcome.changes)
            summary.count(outcome.kind)

        summary.finalize()
        logger.info("ingestion.batch_completed", **summary.model_dump())
        return BatchUpsertResult(results=results, summary=summary, changes=changes)

    async def resolve_input(
        self,
        item: VenueInput,
        location: str | None = None,
    ) -> VenueCreate | UnresolvedInput:
        """Search, fetch details for the best match and attach its timezone."""
        if self.client is None:
            raise ValueError("Resolving inputs requires a PlacesClient")

        query = item.query
        try:
            matches = await self.client.search_places(query, location=location)
            if not matches:
                logger.info("ingestion.input_not_found", name=item.name, query=query)
                return UnresolvedInput(name=item.name, query=query, reason="not_found")

            details = await self.client.get_place_details(matches[0].external_id)
            if details.lat is not None and details.lng is not None:
                timezone = await self.client.get_timezone(details.lat, details.lng)
            else:
                timezone = self.settings.places_default_timezone
            return build_venue_create(details, timezone=timezone, tags=item.tags)
        except (PlacesApiError, PlacesPayloadError, ValueError) as e:
            logger.warning(
                "ingestion.input_lookup_failed",
                name=item.name,
                query=query,
                error=str(e),
                error_type=type(e).__name__,
            )
            return UnresolvedInput(name=item.name, query=query, reason="lookup_error", error=str(e))

    async def ingest(
        self,
        inputs: Sequence[VenueInput],
        resolution: ConflictResolution,
        location: str | None = None,
        confirm: ConfirmCallback | None = None,
        confirm_batch: BatchConfirmCallback | None = None,
        dry_run: bool = False,
    ) -> IngestionReport:
        """Resolve inputs through the places client, plan, confirm and upsert.

        Args:
            inputs: Venue names and optional queries/tags.
            resolution: Conflict policy for existing venues.
            location: ``"lat,lng"`` search bias; defaults to settings.
            confirm: Optional per-record confirmation callback.
            confirm_batch: Optional batch-level confirmation callback.
            dry_run: Plan only; nothing is written.

        Returns:
            Report with planned actions, unresolved inputs and batch result.

        Raises:
            IngestionAborted: The operator quit from a per-record prompt.
        """
        run_id = uuid.uuid4().hex
        token = run_id_ctx.set(run_id)
        start_time = time.perf_counter()
        location = location or self.settings.places_default_location

        try:
            logger.info(
                "ingestion.run_started",
                input_count=len(inputs),
                resolution=resolution.value,
                dry_run=dry_run,
            )

            records: list[VenueCreate] = []
            unresolved: list[UnresolvedInput] = []
            for item in inputs:
                resolved = await self.resolve_input(item, location=location)
                if isinstance(resolved, UnresolvedInput):
                    unresolved.append(resolved)
                else:
                    records.append(resolved)

            planned = [
                PlannedAction(
                    external_id=record.external_id,
                    name=record.name,
                    proposed_action=await self.engine.plan(record, resolution),
                    completeness=calculate_completeness(record),
                )
                for record in records
            ]
            report = IngestionReport(
                run_id=run_id,
                resolution=resolution,
                dry_run=dry_run,
                planned=planned,
                unresolved=unresolved,
            )

            if dry_run or not records:
                report.duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    "ingestion.run_completed",
                    planned=len(planned),
                    unresolved=len(unresolved),
                    dry_run=dry_run,
                )
                return report

            if confirm_batch is not None:
                decision = confirm_batch(BatchConfirmationRequest(planned=planned))
                if decision == BatchDecision.ABORT:
                    report.aborted = True
                    report.duration_ms = (time.perf_counter() - start_time) * 1000
                    logger.info("ingestion.run_declined", planned=len(planned))
                    return report

            report.result = await self.run(records, resolution, confirm=confirm)
            report.duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "ingestion.run_completed",
                planned=len(planned),
                unresolved=len(unresolved),
                success_rate=report.result.summary.success_rate,
                duration_ms=round(report.duration_ms, 2),
            )
            return report
        finally:
            run_id_ctx.reset(token)
