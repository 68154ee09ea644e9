"""Pydantic schemas for batch venue ingestion."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from barcompass.features.venues.schemas import (
    Changeset,
    ConflictResolution,
    OutcomeKind,
    ProposedAction,
    UpsertOutcome,
    VenueCreate,
)

DEFAULT_QUERY_SUFFIX = "cocktail bar"


class VenueInput(BaseModel):
    """One entry of an ingestion input file.

    ``searchQuery`` is accepted as an alias for ``search_query``. Without a
    query the venue name plus ``cocktail bar`` is searched.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    search_query: str | None = Field(None, alias="searchQuery", max_length=255)
    tags: list[str] = Field(default_factory=list)

    @property
    def query(self) -> str:
        return self.search_query or f"{self.name} {DEFAULT_QUERY_SUFFIX}"


class ConfirmDecision(str, Enum):
    """Operator answer for one record."""

    PROCEED = "proceed"
    SKIP = "skip"
    SHOW_MORE = "show_more"
    QUIT = "quit"


class BatchDecision(str, Enum):
    """Operator answer for a whole planned batch."""

    PROCEED = "proceed"
    ABORT = "abort"


class ConfirmationRequest(BaseModel):
    """What the per-record confirmation callback is shown."""

    record: VenueCreate
    proposed_action: ProposedAction
    completeness: int = Field(..., ge=0, le=100)
    show_details: bool = False


class PlannedAction(BaseModel):
    """Write planned for one resolved record."""

    external_id: str
    name: str
    proposed_action: ProposedAction
    completeness: int = Field(..., ge=0, le=100)


class BatchConfirmationRequest(BaseModel):
    """What the batch-level confirmation callback is shown."""

    planned: list[PlannedAction]

    @property
    def totals(self) -> dict[str, int]:
        counts = {action.value: 0 for action in ProposedAction}
        for item in self.planned:
            counts[item.proposed_action.value] += 1
        return counts


class BatchSummary(BaseModel):
    """Counters for a completed batch.

    ``inserted + updated + skipped + errors == total`` once the batch ends.
    """

    total: int = Field(0, ge=0)
    inserted: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    errors: int = Field(0, ge=0)
    success_rate: float = Field(0.0, ge=0, le=100, description="Percent of non-error outcomes")

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def count(self, kind: OutcomeKind) -> None:
        """Increment the counter for one outcome."""
        match kind:
            case OutcomeKind.INSERTED:
                self.inserted += 1
            case OutcomeKind.UPDATED:
                self.updated += 1
            case OutcomeKind.SKIPPED:
                self.skipped += 1
            case OutcomeKind.ERROR:
                self.errors += 1

    def finalize(self) -> None:
        """Compute ``success_rate``, rounded to two decimals (0.0 when empty)."""
        if self.total == 0:
            self.success_rate = 0.0
            return
        succeeded = self.inserted + self.updated + self.skipped
        self.success_rate = round(succeeded / self.total * 100, 2)


class BatchUpsertResult(BaseModel):
    """Per-record outcomes plus aggregated summary and changeset."""

    results: list[UpsertOutcome] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)
    changes: Changeset = Field(default_factory=Changeset)


class UnresolvedInput(BaseModel):
    """An input that never became a venue record."""

    name: str
    query: str
    reason: Literal["not_found", "lookup_error"]
    error: str | None = None


class IngestionReport(BaseModel):
    """Everything that happened in one ingestion run."""

    run_id: str
    resolution: ConflictResolution
    dry_run: bool = False
    aborted: bool = False
    planned: list[PlannedAction] = Field(default_factory=list)
    unresolved: list[UnresolvedInput] = Field(default_factory=list)
    result: BatchUpsertResult | None = None
    duration_ms: float = Field(0.0, ge=0)


# =============================================================================
# HTTP
# =============================================================================


class IngestVenuesRequest(BaseModel):
    """Request body for POST /ingest/venues."""

    records: list[VenueCreate] = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Normalized venue records to upsert",
    )
    resolution: ConflictResolution = Field(
        ConflictResolution.MERGE, description="Policy for records that already exist"
    )


class IngestVenuesResponse(BaseModel):
    """Response body for POST /ingest/venues."""

    summary: BatchSummary
    results: list[UpsertOutcome]
    changes: Changeset
    duration_ms: float = Field(..., ge=0, description="Processing duration in milliseconds")
