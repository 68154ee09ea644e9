"""Async client for the places-directory web API.

Every outbound request is admitted through the client's ``RateLimiter`` inside
the operation retried by its ``BackoffExecutor``, so retries are charged
against the same quota as first attempts.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from barcompass.core.config import Settings, get_settings
from barcompass.core.logging import get_logger
from barcompass.features.places.backoff import BackoffExecutor, BackoffPolicy
from barcompass.features.places.normalize import PlacesPayloadError, normalize_place
from barcompass.features.places.rate_limiter import RateLimiter
from barcompass.features.places.schemas import RawVenueDetails, UsageStats
from barcompass.features.places.timezones import fallback_timezone

logger = get_logger(__name__)

SUCCESS_STATUSES = frozenset({"OK", "ZERO_RESULTS"})

DETAIL_FIELDS: tuple[str, ...] = (
    "place_id",
    "name",
    "formatted_address",
    "geometry",
    "formatted_phone_number",
    "international_phone_number",
    "website",
    "url",
    "rating",
    "user_ratings_total",
    "price_level",
    "types",
    "business_status",
    "opening_hours",
    "photos",
    "reviews",
)

FALLBACK_SUFFIXES: tuple[str, ...] = ("bar", "restaurant", "cafe")

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_WHITESPACE = re.compile(r"\s+")


class PlacesConfigError(Exception):
    """The client cannot be built from the current configuration."""

    pass


class PlacesApiError(Exception):
    """A places-directory request failed.

    Attributes:
        api_status: The ``status`` field of the response body, if any.
        http_status: The HTTP status code, if a response was received.
    """

    def __init__(
        self,
        message: str,
        api_status: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.api_status = api_status
        self.http_status = http_status


def clean_query(query: str) -> str:
    """Strip parenthetical text and stray parentheses, collapse whitespace."""
    cleaned = _PARENTHETICAL.sub(" ", query)
    cleaned = cleaned.replace("(", " ").replace(")", " ")
    return _WHITESPACE.sub(" ", cleaned).strip()


def search_candidates(query: str) -> list[str]:
    """Ordered query variants tried by ``PlacesClient.search_places``."""
    cleaned = clean_query(query)
    if not cleaned:
        return []
    candidates = [cleaned, *(f"{cleaned} {suffix}" for suffix in FALLBACK_SUFFIXES)]
    tokens = cleaned.split(" ")
    if len(tokens) > 1:
        candidates.append(tokens[0])
    return [clean_query(candidate) for candidate in candidates]


def parse_location(location: str) -> tuple[float, float]:
    """Parse a ``"lat,lng"`` string.

    Raises:
        ValueError: If the string is malformed or out of range.
    """
    parts = location.split(",")
    if len(parts) != 2:
        raise ValueError(f"Location must be 'lat,lng', got {location!r}")
    lat, lng = float(parts[0]), float(parts[1])
    validate_coordinates(lat, lng)
    return lat, lng


def validate_coordinates(lat: float, lng: float) -> None:
    """Raise ValueError for coordinates outside the valid range."""
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude out of range: {lat}")
    if not -180 <= lng <= 180:
        raise ValueError(f"Longitude out of range: {lng}")


class PlacesClient:
    """Rate-limited, retrying client for search, detail and timezone lookups.

    The client owns its limiter and backoff executor; concurrent ingestion
    runs should each build their own client.

    Args:
        settings: Application settings; defaults to ``get_settings()``.
        api_key: Overrides the key from settings.
        http_client: Pre-built ``httpx.AsyncClient`` (tests pass one with a
            ``MockTransport``). Its base URL must point at the API root.
        limiter: Overrides the limiter built from settings.
        backoff: Overrides the executor built from settings.
        sleep: Awaitable sleep used for the courtesy delay between detail calls.
        clock: Monotonic clock used for usage accounting.

    Raises:
        PlacesConfigError: If no API key is available.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        limiter: RateLimiter | None = None,
        backoff: BackoffExecutor | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else self.settings.places_api_key
        if not self._api_key:
            raise PlacesConfigError(
                "Places API key not configured. Set GOOGLE_PLACES_API_KEY or GOOGLE_MAPS_API_KEY."
            )

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.settings.places_base_url,
            timeout=httpx.Timeout(self.settings.places_timeout_seconds),
        )
        self.limiter = limiter or RateLimiter(
            max_requests=self.settings.places_rate_limit_requests,
            window_seconds=self.settings.places_rate_limit_window_seconds,
        )
        self.backoff = backoff or BackoffExecutor(
            BackoffPolicy(
                base_delay=self.settings.places_backoff_base_seconds,
                max_delay=self.settings.places_backoff_max_seconds,
                max_retries=self.settings.places_max_retries,
                factor=self.settings.places_backoff_factor,
            )
        )
        self._sleep = sleep
        self._clock = clock
        self._request_count = 0
        self._started_at = clock()

    async def __aenter__(self) -> PlacesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request_once(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        await self.limiter.admit()
        self._request_count += 1

        try:
            response = await self._client.get(path, params={**params, "key": self._api_key})
        except httpx.HTTPError as e:
            raise PlacesApiError(f"Request to {path} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise PlacesApiError(
                f"HTTP {response.status_code} from {path}",
                http_status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise PlacesApiError(
                f"Invalid JSON from {path}", http_status=response.status_code
            ) from e
        if not isinstance(payload, dict):
            raise PlacesApiError(
                f"Malformed response from {path}", http_status=response.status_code
            )

        status = payload.get("status")
        if status not in SUCCESS_STATUSES:
            raise PlacesApiError(
                payload.get("error_message") or f"API status {status}",
                api_status=status,
                http_status=response.status_code,
            )
        return payload

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        def _on_retry(attempt: int, error: Exception) -> None:
            logger.warning(
                "places.request_failed",
                path=path,
                attempt=attempt,
                error=str(error),
                api_status=getattr(error, "api_status", None),
                http_status=getattr(error, "http_status", None),
            )

        return await self.backoff.execute(
            lambda: self._request_once(path, params),
            on_retry=_on_retry,
        )

    def _normalize_results(self, results: Any) -> list[RawVenueDetails]:
        places: list[RawVenueDetails] = []
        if not isinstance(results, list):
            logger.warning("places.results_malformed", results_type=type(results).__name__)
            return places
        for result in results:
            try:
                places.append(normalize_place(result, data_source=self.settings.ingest_data_source))
            except PlacesPayloadError as e:
                logger.warning("places.result_dropped", error=str(e))
        return places

    # =========================================================================
    # Search
    # =========================================================================

    async def text_search(
        self,
        query: str,
        location: str | None = None,
        radius: int | None = None,
    ) -> list[RawVenueDetails]:
        """Run a single text search.

        Args:
            query: Free-text query.
            location: Optional ``"lat,lng"`` bias.
            radius: Bias radius in meters; defaults to settings.

        Returns:
            Normalized results; empty on ``ZERO_RESULTS``.

        Raises:
            ValueError: Empty query or malformed location.
            PlacesApiError: After retries are exhausted.
        """
        if not query or not query.strip():
            raise ValueError("Search query must not be empty")

        params: dict[str, Any] = {"query": query.strip()}
        if location:
            lat, lng = parse_location(location)
            params["location"] = f"{lat},{lng}"
            params["radius"] = radius or self.settings.places_search_radius_m

        payload = await self._get_json("/place/textsearch/json", params)
        results = self._normalize_results(payload.get("results") or [])
        logger.debug("places.text_search_completed", query=params["query"], result_count=len(results))
        return results

    async def search_places(self, query: str, location: str | None = None) -> list[RawVenueDetails]:
        """Search with the fallback cascade, stopping at the first non-empty result.

        Candidates in order: the cleaned query, then with ``bar``,
        ``restaurant`` and ``cafe`` appended, then its first word alone when
        it has more than one.
        """
        candidates = search_candidates(query)
        if not candidates:
            raise ValueError("Search query must not be empty")

        for candidate in candidates:
            results = await self.text_search(candidate, location=location)
            if results:
                logger.info(
                    "places.search_matched",
                    query=query,
                    matched_query=candidate,
                    result_count=len(results),
                )
                return results

        logger.info("places.search_no_results", query=query, attempts=len(candidates))
        return []

    async def nearby_search(
        self,
        lat: float,
        lng: float,
        radius: int = 1000,
        category: str = "bar",
    ) -> list[RawVenueDetails]:
        """Search by coordinates and category."""
        validate_coordinates(lat, lng)
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")

        payload = await self._get_json(
            "/place/nearbysearch/json",
            {"location": f"{lat},{lng}", "radius": radius, "type": category},
        )
        return self._normalize_results(payload.get("results") or [])

    # =========================================================================
    # Details
    # =========================================================================

    async def get_place_details(self, external_id: str) -> RawVenueDetails:
        """Fetch the full record for one place.

        Raises:
            ValueError: Empty identifier.
            PlacesApiError: Request failed or the response carried no result.
            PlacesPayloadError: The result could not be normalized.
        """
        if not external_id:
            raise ValueError("external_id must not be empty")

        payload = await self._get_json(
            "/place/details/json",
            {"place_id": external_id, "fields": ",".join(DETAIL_FIELDS)},
        )
        if payload.get("status") != "OK" or not payload.get("result"):
            raise PlacesApiError(
                f"No details for place {external_id}",
                api_status=payload.get("status"),
            )
        return normalize_place(payload["result"], data_source=self.settings.ingest_data_source)

    async def hydrate(
        self,
        results: Sequence[RawVenueDetails],
        max_places: int = 20,
    ) -> list[RawVenueDetails]:
        """Replace search results with their detail records.

        Fetches sequentially with a courtesy delay between calls. A failed
        lookup keeps the basic search record.
        """
        hydrated: list[RawVenueDetails] = []
        for index, basic in enumerate(results[:max_places]):
            if index > 0 and self.settings.places_detail_delay_seconds > 0:
                await self._sleep(self.settings.places_detail_delay_seconds)
            try:
                hydrated.append(await self.get_place_details(basic.external_id))
            except (PlacesApiError, PlacesPayloadError, ValueError) as e:
                logger.warning(
                    "places.details_fallback",
                    external_id=basic.external_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                hydrated.append(basic)
        return hydrated

    async def search_nearby_with_details(
        self,
        lat: float,
        lng: float,
        radius: int = 1000,
        category: str = "bar",
        max_places: int = 20,
    ) -> list[RawVenueDetails]:
        """Nearby search followed by detail hydration."""
        results = await self.nearby_search(lat, lng, radius=radius, category=category)
        return await self.hydrate(results, max_places=max_places)

    # =========================================================================
    # Timezone
    # =========================================================================

    async def get_timezone(self, lat: float, lng: float, timestamp: int | None = None) -> str:
        """Resolve the IANA timezone for coordinates; never fails.

        Falls back to the static bounding-box table, then the configured
        default, when the API is unavailable or returns no zone.
        """
        validate_coordinates(lat, lng)
        if timestamp is None:
            timestamp = int(time.time())
        try:
            payload = await self._get_json(
                "/timezone/json",
                {"location": f"{lat},{lng}", "timestamp": timestamp},
            )
            zone = payload.get("timeZoneId")
            if isinstance(zone, str) and zone:
                return zone
            logger.info("places.timezone_missing", lat=lat, lng=lng)
        except Exception as e:
            logger.warning("places.timezone_fallback", lat=lat, lng=lng, error=str(e))
        return fallback_timezone(lat, lng, default=self.settings.places_default_timezone)

    # =========================================================================
    # Usage accounting
    # =========================================================================

    def usage_stats(self) -> UsageStats:
        """Request count and rate since construction or the last reset."""
        elapsed = max(self._clock() - self._started_at, 0.0)
        rate = self._request_count / elapsed if elapsed > 0 else 0.0
        return UsageStats(
            request_count=self._request_count,
            elapsed_seconds=round(elapsed, 3),
            requests_per_second=round(rate, 3),
            window_count=self.limiter.current_count(),
        )

    def reset_usage_stats(self) -> None:
        """Zero the request counter and restart the clock."""
        self._request_count = 0
        self._started_at = self._clock()
