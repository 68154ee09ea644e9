"""Feature-specific test fixtures for ingestion."""

from collections.abc import Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from barcompass.core.config import Settings
from barcompass.features.ingestion.orchestrator import BatchOrchestrator
from barcompass.features.ingestion.schemas import ConfirmationRequest, ConfirmDecision
from barcompass.features.places.client import PlacesClient
from barcompass.features.places.schemas import RawVenueDetails
from barcompass.features.venues.schemas import VenueCreate
from barcompass.features.venues.tests.conftest import InMemoryVenueStore
from barcompass.features.venues.upsert import UpsertEngine


class ScriptedConfirm:
    """Confirmation callback replaying a fixed list of decisions."""

    def __init__(self, decisions: Iterable[ConfirmDecision]) -> None:
        self.decisions = list(decisions)
        self.requests: list[ConfirmationRequest] = []

    def __call__(self, request: ConfirmationRequest) -> ConfirmDecision:
        self.requests.append(request)
        return self.decisions.pop(0)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def venue(external_id: str, name: str | None = None, **fields) -> VenueCreate:
    return VenueCreate(external_id=external_id, name=name or f"Venue {external_id}", **fields)


def raw_details(external_id: str, name: str, **fields) -> RawVenueDetails:
    return RawVenueDetails(
        external_id=external_id,
        name=name,
        main_text=name,
        lat=22.2808,
        lng=114.1557,
        **fields,
    )


@pytest.fixture
def ingestion_settings() -> Settings:
    return Settings(_env_file=None, app_env="testing", google_places_api_key="test-key")


@pytest.fixture
def store() -> InMemoryVenueStore:
    return InMemoryVenueStore()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def places_client() -> MagicMock:
    """PlacesClient double with async lookups."""
    client = MagicMock(spec=PlacesClient)
    client.search_places = AsyncMock(return_value=[])
    client.get_place_details = AsyncMock()
    client.get_timezone = AsyncMock(return_value="Asia/Hong_Kong")
    return client


@pytest.fixture
def orchestrator(store, sleep, places_client, ingestion_settings) -> BatchOrchestrator:
    return BatchOrchestrator(
        UpsertEngine(store),
        client=places_client,
        item_delay=1.0,
        sleep=sleep,
        settings=ingestion_settings,
    )
