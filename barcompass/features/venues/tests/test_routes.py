"""Tests for venue operator routes."""

import pytest

from barcompass.features.venues.routes import get_venue_repository
from barcompass.features.venues.schemas import VenueCreate
from barcompass.features.venues.tests.conftest import InMemoryVenueStore
from barcompass.main import app


@pytest.fixture
async def seeded_store(sample_venue):
    store = InMemoryVenueStore()
    await store.insert(sample_venue)
    await store.insert(VenueCreate(external_id="B", name="Quiet Cafe", rating=3.5))
    app.dependency_overrides[get_venue_repository] = lambda: store
    yield store
    app.dependency_overrides.pop(get_venue_repository, None)


@pytest.mark.asyncio
async def test_search_venues_paginates(client, seeded_store):
    response = await client.get("/venues", params={"page_size": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["pages"] == 2
    assert data["has_next"] is True
    assert [v["external_id"] for v in data["items"]] == ["ChIJ-bar-x"]


@pytest.mark.asyncio
async def test_search_venues_filters_by_rating(client, seeded_store):
    response = await client.get("/venues", params={"max_rating": 4.0})

    assert [v["name"] for v in response.json()["items"]] == ["Quiet Cafe"]


@pytest.mark.asyncio
async def test_search_rejects_out_of_range_rating(client, seeded_store):
    response = await client.get("/venues", params={"min_rating": 7})

    assert response.status_code == 422
    assert response.headers["content-type"] == "application/problem+json"


@pytest.mark.asyncio
async def test_get_venue(client, seeded_store):
    response = await client.get("/venues/ChIJ-bar-x")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Bar X"
    assert data["opening_hours"]["open_now"] is True


@pytest.mark.asyncio
async def test_get_missing_venue_returns_problem_detail(client, seeded_store):
    response = await client.get("/venues/nope")

    assert response.status_code == 404
    assert response.headers["content-type"] == "application/problem+json"
    body = response.json()
    assert body["type"] == "/errors/not-found"
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_verify_and_audit(client, seeded_store):
    response = await client.post("/venues/ChIJ-bar-x/verify", json={"verified_by": "ops"})

    assert response.status_code == 200
    assert response.json()["is_verified"] is True

    audit = (await client.get("/venues/ChIJ-bar-x/audit")).json()
    assert audit["verified_by"] == "ops"
    assert audit["data_source"] == "google_places"


@pytest.mark.asyncio
async def test_verify_requires_operator_name(client, seeded_store):
    response = await client.post("/venues/ChIJ-bar-x/verify", json={"verified_by": ""})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_stats(client, seeded_store):
    response = await client.get("/venues/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["unverified"] == 2
    assert data["average_rating"] == 4.0
