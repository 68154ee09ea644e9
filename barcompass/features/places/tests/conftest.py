"""Feature-specific test fixtures for the places client."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from barcompass.core.config import Settings
from barcompass.features.places.backoff import BackoffExecutor, BackoffPolicy
from barcompass.features.places.client import PlacesClient
from barcompass.features.places.rate_limiter import RateLimiter


class FakeClock:
    """Deterministic monotonic clock; ``sleep`` advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingHandler:
    """MockTransport handler that records requests and replays canned responses.

    ``routes`` maps a path suffix to either a list of responses (consumed in
    order, the last one repeats) or a callable taking the request.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, route in self.routes.items():
            if request.url.path.endswith(suffix):
                if callable(route):
                    return route(request)
                response = route.pop(0) if len(route) > 1 else route[0]
                if isinstance(response, Exception):
                    raise response
                # Fresh copy so a repeated response is never re-bound to a second request
                return httpx.Response(
                    response.status_code, content=response.content, headers=response.headers
                )
        return httpx.Response(404, json={"status": "NOT_FOUND"})

    def params_for(self, suffix: str) -> list[dict[str, str]]:
        return [
            dict(request.url.params)
            for request in self.requests
            if request.url.path.endswith(suffix)
        ]


def ok(results: list[dict[str, Any]] | None = None, **extra: Any) -> httpx.Response:
    """Successful API body."""
    body: dict[str, Any] = {"status": "OK", **extra}
    if results is not None:
        body["results"] = results
    return httpx.Response(200, json=body)


def zero_results() -> httpx.Response:
    return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})


def api_status(status: str, message: str | None = None) -> httpx.Response:
    body: dict[str, Any] = {"status": status}
    if message:
        body["error_message"] = message
    return httpx.Response(200, json=body)


def search_result(place_id: str = "place-1", name: str = "Bar X", **extra: Any) -> dict[str, Any]:
    return {
        "place_id": place_id,
        "name": name,
        "formatted_address": "1 Wyndham St, Central, Hong Kong",
        "geometry": {"location": {"lat": 22.2808, "lng": 114.1557}},
        "types": ["bar", "point_of_interest", "establishment"],
        **extra,
    }


def detail_result(place_id: str = "place-1", name: str = "Bar X", **extra: Any) -> dict[str, Any]:
    return {
        **search_result(place_id, name),
        "formatted_phone_number": "2345 6789",
        "international_phone_number": "+852 2345 6789",
        "website": "https://barx.example",
        "url": "https://maps.google.com/?cid=1",
        "rating": 4.6,
        "user_ratings_total": 812,
        "price_level": 3,
        "business_status": "OPERATIONAL",
        "opening_hours": {
            "open_now": True,
            "periods": [{"open": {"day": 1, "time": "1800"}, "close": {"day": 2, "time": "0200"}}],
            "weekday_text": ["Monday: 6:00 PM - 2:00 AM"],
        },
        **extra,
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def places_settings() -> Settings:
    """Settings with a dummy key and no courtesy delay surprises."""
    return Settings(
        _env_file=None,
        app_env="testing",
        google_places_api_key="test-key",
        places_detail_delay_seconds=0.1,
    )


@pytest.fixture
def make_client(
    clock: FakeClock, places_settings: Settings
) -> Callable[[RecordingHandler], PlacesClient]:
    """Build a PlacesClient wired to a MockTransport and the fake clock."""

    def _make(handler: RecordingHandler, max_retries: int = 2) -> PlacesClient:
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="https://places.test/maps/api",
        )
        return PlacesClient(
            settings=places_settings,
            http_client=http_client,
            limiter=RateLimiter(100, clock=clock, sleep=clock.sleep),
            backoff=BackoffExecutor(
                BackoffPolicy(base_delay=0.01, max_delay=0.05, max_retries=max_retries),
                sleep=clock.sleep,
            ),
            sleep=clock.sleep,
            clock=clock,
        )

    return _make
