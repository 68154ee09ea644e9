"""Pydantic schemas for normalized places-directory data."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BusinessStatus(str, Enum):
    """Operating status reported by the places directory."""

    OPERATIONAL = "OPERATIONAL"
    CLOSED_TEMPORARILY = "CLOSED_TEMPORARILY"
    CLOSED_PERMANENTLY = "CLOSED_PERMANENTLY"


class DayTime(BaseModel):
    """A point in the week: day 0 (Sunday) to 6, time as ``HHMM``."""

    day: int = Field(..., ge=0, le=6)
    time: str | None = Field(None, pattern=r"^\d{4}$")


class OpeningPeriod(BaseModel):
    """One opening interval; ``close`` is absent for always-open venues."""

    open: DayTime
    close: DayTime | None = None


class OpeningHours(BaseModel):
    """Opening hours as stored on the venue record (JSONB)."""

    open_now: bool | None = None
    periods: list[OpeningPeriod] | None = None
    weekday_text: list[str] | None = None


class PlacePhoto(BaseModel):
    """Photo reference; not persisted."""

    reference: str
    width: int | None = None
    height: int | None = None
    attributions: list[str] = Field(default_factory=list)


class PlaceReview(BaseModel):
    """User review snippet; not persisted."""

    author_name: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    text: str | None = None
    time: int | None = None
    language: str | None = None
    relative_time_description: str | None = None


class RawVenueDetails(BaseModel):
    """Normalized view of one places-directory result.

    Search results carry a subset of these fields; detail lookups fill the
    rest. Photos and reviews are informational and never written to the
    venue store.
    """

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(..., min_length=1, description="Stable place identifier")
    name: str
    main_text: str | None = None
    secondary_text: str | None = None
    formatted_address: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    phone_number: str | None = None
    international_phone_number: str | None = None
    website: str | None = None
    maps_url: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    rating_count: int | None = Field(None, ge=0)
    price_level: int | None = Field(None, ge=0, le=4)
    categories: list[str] | None = None
    business_status: BusinessStatus | None = None
    opening_hours: OpeningHours | None = None
    data_source: str = "google_places"
    photos: list[PlacePhoto] = Field(default_factory=list)
    reviews: list[PlaceReview] = Field(default_factory=list)


class UsageStats(BaseModel):
    """Outbound request accounting for one client instance."""

    request_count: int = Field(..., ge=0)
    elapsed_seconds: float = Field(..., ge=0)
    requests_per_second: float = Field(..., ge=0)
    window_count: int = Field(..., ge=0, description="Admissions in the live rate window")
