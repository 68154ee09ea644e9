"""Map raw places-directory JSON results into ``RawVenueDetails``.

Malformed sub-objects are dropped rather than rejecting the whole result;
only a missing place identifier or name is fatal.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from barcompass.core.logging import get_logger
from barcompass.features.places.schemas import (
    BusinessStatus,
    OpeningHours,
    PlacePhoto,
    PlaceReview,
    RawVenueDetails,
)

logger = get_logger(__name__)


class PlacesPayloadError(Exception):
    """A result is missing the fields required to identify a venue."""

    pass


def split_address(formatted_address: str | None) -> str | None:
    """Address text without its trailing (country) segment.

    Returns None when the address has a single segment.
    """
    if not formatted_address:
        return None
    parts = formatted_address.split(",")
    if len(parts) <= 1:
        return None
    return ",".join(parts[:-1]).strip()


def _number_in_range(value: Any, low: float, high: float) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if low <= value <= high:
        return float(value)
    return None


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _business_status(value: Any) -> BusinessStatus | None:
    try:
        return BusinessStatus(value)
    except ValueError:
        return None


def _opening_hours(value: Any) -> OpeningHours | None:
    if not isinstance(value, dict):
        return None
    try:
        return OpeningHours.model_validate(value)
    except PydanticValidationError:
        # Keep the parts that do parse
        open_now = value.get("open_now")
        weekday_text = value.get("weekday_text")
        return OpeningHours(
            open_now=open_now if isinstance(open_now, bool) else None,
            weekday_text=weekday_text if isinstance(weekday_text, list) else None,
        )


def _photos(value: Any) -> list[PlacePhoto]:
    photos: list[PlacePhoto] = []
    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict) or not _text(item.get("photo_reference")):
            continue
        try:
            photos.append(
                PlacePhoto(
                    reference=item["photo_reference"],
                    width=item.get("width"),
                    height=item.get("height"),
                    attributions=item.get("html_attributions") or [],
                )
            )
        except PydanticValidationError:
            continue
    return photos


def _reviews(value: Any) -> list[PlaceReview]:
    reviews: list[PlaceReview] = []
    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict):
            continue
        try:
            reviews.append(PlaceReview.model_validate(item))
        except PydanticValidationError:
            continue
    return reviews


def normalize_place(payload: dict[str, Any], data_source: str = "google_places") -> RawVenueDetails:
    """Normalize one search or detail result.

    Args:
        payload: A single element of ``results`` or the ``result`` object of
            a detail response.
        data_source: Provenance tag written to the record.

    Returns:
        Normalized venue details.

    Raises:
        PlacesPayloadError: If ``place_id`` or ``name`` is missing, or the
            result cannot be represented as ``RawVenueDetails``.
    """
    if not isinstance(payload, dict):
        raise PlacesPayloadError(f"Result is not an object: {type(payload).__name__}")

    external_id = payload.get("place_id")
    name = payload.get("name")
    if not external_id or not isinstance(external_id, str):
        raise PlacesPayloadError("Result has no place_id")
    if not name or not isinstance(name, str):
        raise PlacesPayloadError(f"Result {external_id} has no name")

    location = _mapping(_mapping(payload.get("geometry")).get("location"))
    lat = _number_in_range(location.get("lat"), -90, 90)
    lng = _number_in_range(location.get("lng"), -180, 180)

    rating = _number_in_range(payload.get("rating"), 0, 5)
    price_level = _number_in_range(payload.get("price_level"), 0, 4)
    rating_count = payload.get("user_ratings_total")
    if not isinstance(rating_count, int) or isinstance(rating_count, bool) or rating_count < 0:
        rating_count = None

    types = payload.get("types")
    categories = [t for t in types if isinstance(t, str)] if isinstance(types, list) else None

    formatted_address = _text(payload.get("formatted_address")) or _text(payload.get("vicinity"))
    international_phone = _text(payload.get("international_phone_number"))

    try:
        details = RawVenueDetails(
            external_id=external_id,
            name=name,
            main_text=name,
            secondary_text=split_address(formatted_address),
            formatted_address=formatted_address,
            lat=lat,
            lng=lng,
            phone_number=international_phone or _text(payload.get("formatted_phone_number")),
            international_phone_number=international_phone,
            website=_text(payload.get("website")),
            maps_url=_text(payload.get("url")),
            rating=rating,
            rating_count=rating_count,
            price_level=int(price_level) if price_level is not None else None,
            categories=categories,
            business_status=_business_status(payload.get("business_status")),
            opening_hours=_opening_hours(payload.get("opening_hours")),
            data_source=data_source,
            photos=_photos(payload.get("photos")),
            reviews=_reviews(payload.get("reviews")),
        )
    except PydanticValidationError as e:
        raise PlacesPayloadError(f"Result {external_id} is malformed: {e.errors()[0]['msg']}") from e
    if details.rating is None and payload.get("rating") is not None:
        logger.debug("places.rating_dropped", external_id=external_id, rating=payload.get("rating"))
    return details
