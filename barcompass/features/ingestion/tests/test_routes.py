"""Tests for ingestion API routes."""

import pytest

from barcompass.features.venues.routes import get_venue_repository
from barcompass.features.venues.tests.conftest import InMemoryVenueStore
from barcompass.main import app


@pytest.fixture
def route_store():
    store = InMemoryVenueStore(fail_on={"BAD"})
    app.dependency_overrides[get_venue_repository] = lambda: store
    yield store
    app.dependency_overrides.pop(get_venue_repository, None)


@pytest.mark.asyncio
async def test_ingest_venues_inserts(client, route_store):
    response = await client.post(
        "/ingest/venues",
        json={"records": [{"external_id": "A", "name": "Bar X", "rating": 4.5}]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["summary"] == {
        "total": 1,
        "inserted": 1,
        "updated": 0,
        "skipped": 0,
        "errors": 0,
        "success_rate": 100.0,
    }
    assert data["results"][0]["kind"] == "inserted"
    assert data["changes"]["added"] == ["A"]
    assert route_store.rows["A"].rating == 4.5


@pytest.mark.asyncio
async def test_ingest_venues_merge_keeps_existing_values(client, route_store):
    await client.post(
        "/ingest/venues",
        json={"records": [{"external_id": "A", "name": "Bar X", "rating": 4.5}]},
    )

    response = await client.post(
        "/ingest/venues",
        json={
            "records": [{"external_id": "A", "name": "Bar X", "website": "https://x.example"}],
            "resolution": "merge",
        },
    )

    assert response.json()["summary"]["updated"] == 1
    assert route_store.rows["A"].rating == 4.5
    assert route_store.rows["A"].website == "https://x.example"


@pytest.mark.asyncio
async def test_ingest_venues_partial_failure(client, route_store):
    response = await client.post(
        "/ingest/venues",
        json={
            "records": [
                {"external_id": "BAD", "name": "Broken"},
                {"external_id": "B", "name": "Bar Y"},
            ]
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["summary"]["errors"] == 1
    assert data["summary"]["inserted"] == 1
    assert data["summary"]["success_rate"] == 50.0
    assert data["results"][0]["error"]["error_type"] == "DatabaseError"


@pytest.mark.asyncio
async def test_ingest_venues_validation_error(client, route_store):
    response = await client.post(
        "/ingest/venues",
        json={"records": [{"external_id": "A", "name": "Bar X", "rating": 9}]},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"][0]["field"] == "records.0.rating"
