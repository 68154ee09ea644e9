"""Pydantic schemas for venue records and upsert outcomes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from barcompass.features.places.schemas import BusinessStatus, OpeningHours


class ConflictResolution(str, Enum):
    """How an incoming record is reconciled with an existing one.

    - SKIP: leave the existing record untouched
    - UPDATE: overwrite every field present in the incoming payload
    - MERGE: take incoming values that are not None, keep the rest
    - REPLACE: overwrite every mutable field, clearing absent ones
    """

    SKIP = "skip"
    UPDATE = "update"
    MERGE = "merge"
    REPLACE = "replace"


class ProposedAction(str, Enum):
    """Write the upsert engine would perform for a record."""

    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"


class OutcomeKind(str, Enum):
    """Result of upserting one record."""

    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


# =============================================================================
# Venue Records
# =============================================================================


class VenueCreate(BaseModel):
    """Incoming normalized venue record (no persistence metadata)."""

    external_id: str = Field(..., min_length=1, max_length=255, description="Places-directory id")
    name: str = Field(..., min_length=1, max_length=255)
    main_text: str | None = Field(None, max_length=255)
    secondary_text: str | None = Field(None, max_length=500)
    formatted_address: str | None = Field(None, max_length=500)
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    phone_number: str | None = Field(None, max_length=50)
    international_phone_number: str | None = Field(None, max_length=50)
    website: str | None = Field(None, max_length=500)
    maps_url: str | None = Field(None, max_length=500)
    rating: float | None = Field(None, ge=0, le=5)
    rating_count: int | None = Field(None, ge=0)
    price_level: int | None = Field(None, ge=0, le=4)
    categories: list[str] | None = None
    business_status: BusinessStatus | None = None
    opening_hours: OpeningHours | None = None
    timezone: str | None = Field(None, max_length=64)
    tags: list[str] | None = None
    data_source: str = Field("google_places", max_length=50)


class VenueResponse(BaseModel):
    """Persisted venue record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    external_id: str
    name: str
    main_text: str | None = None
    secondary_text: str | None = None
    formatted_address: str | None = None
    lat: float | None = None
    lng: float | None = None
    phone_number: str | None = None
    international_phone_number: str | None = None
    website: str | None = None
    maps_url: str | None = None
    rating: float | None = None
    rating_count: int | None = None
    price_level: int | None = None
    categories: list[str] | None = None
    business_status: BusinessStatus | None = None
    opening_hours: OpeningHours | None = None
    timezone: str | None = None
    tags: list[str] | None = None
    is_verified: bool = False
    verified_at: datetime | None = None
    verified_by: str | None = None
    data_source: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_refreshed_at: datetime | None = None


# =============================================================================
# Upsert Outcomes
# =============================================================================


class Changeset(BaseModel):
    """External ids grouped by what happened to them (reporting only)."""

    added: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def absorb(self, other: "Changeset") -> None:
        """Append another changeset's ids to this one."""
        self.added.extend(other.added)
        self.updated.extend(other.updated)
        self.unchanged.extend(other.unchanged)
        self.errors.extend(other.errors)


class OutcomeError(BaseModel):
    """Failure detail attached to an ``error`` outcome."""

    message: str
    error_type: str


class UpsertOutcome(BaseModel):
    """Result of reconciling one incoming record with the store."""

    kind: OutcomeKind
    external_id: str
    record: VenueResponse | None = None
    error: OutcomeError | None = None
    changes: Changeset = Field(default_factory=Changeset)

    @classmethod
    def inserted(cls, record: VenueResponse) -> "UpsertOutcome":
        return cls(
            kind=OutcomeKind.INSERTED,
            external_id=record.external_id,
            record=record,
            changes=Changeset(added=[record.external_id]),
        )

    @classmethod
    def updated(cls, record: VenueResponse) -> "UpsertOutcome":
        return cls(
            kind=OutcomeKind.UPDATED,
            external_id=record.external_id,
            record=record,
            changes=Changeset(updated=[record.external_id]),
        )

    @classmethod
    def skipped(cls, external_id: str, record: VenueResponse | None = None) -> "UpsertOutcome":
        return cls(
            kind=OutcomeKind.SKIPPED,
            external_id=external_id,
            record=record,
            changes=Changeset(unchanged=[external_id]),
        )

    @classmethod
    def failed(cls, external_id: str, error: Exception) -> "UpsertOutcome":
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        return cls(
            kind=OutcomeKind.ERROR,
            external_id=external_id,
            error=OutcomeError(message=message, error_type=type(error).__name__),
            changes=Changeset(errors=[external_id]),
        )


# =============================================================================
# Operator Endpoints
# =============================================================================


class VerifyRequest(BaseModel):
    """Request body for POST /venues/{external_id}/verify."""

    verified_by: str = Field(..., min_length=1, max_length=100, description="Operator name")


class AuditTrail(BaseModel):
    """Provenance and verification history of one venue."""

    model_config = ConfigDict(from_attributes=True)

    external_id: str
    data_source: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_refreshed_at: datetime | None = None
    is_verified: bool
    verified_at: datetime | None = None
    verified_by: str | None = None


class VenueStats(BaseModel):
    """Aggregate counts over the venue store."""

    total: int = Field(..., ge=0)
    verified: int = Field(..., ge=0)
    unverified: int = Field(..., ge=0)
    by_data_source: dict[str, int] = Field(default_factory=dict)
    average_rating: float | None = None
