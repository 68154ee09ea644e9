"""Places-directory client: rate limiting, backoff, search and normalization."""

from barcompass.features.places.backoff import BackoffExecutor, BackoffPolicy
from barcompass.features.places.client import PlacesApiError, PlacesClient, PlacesConfigError
from barcompass.features.places.rate_limiter import RateLimiter
from barcompass.features.places.schemas import RawVenueDetails

__all__ = [
    "BackoffExecutor",
    "BackoffPolicy",
    "PlacesApiError",
    "PlacesClient",
    "PlacesConfigError",
    "RateLimiter",
    "RawVenueDetails",
]
