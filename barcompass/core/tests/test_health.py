"""Tests for health check endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from barcompass.core import health
from barcompass.core.database import get_db
from barcompass.main import app


def session_reporting(table_present: bool) -> MagicMock:
    result = MagicMock()
    result.scalar.return_value = table_present
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    return session


@pytest.fixture
def override_db():
    """Install a fake session dependency and remove it afterwards."""

    def _install(session):
        async def _get_db():
            yield session

        app.dependency_overrides[get_db] = _get_db

    yield _install
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def places_key(monkeypatch):
    def _set(key: str) -> None:
        settings = MagicMock(places_api_key=key)
        monkeypatch.setattr(health, "get_settings", lambda: settings)

    return _set


@pytest.mark.asyncio
async def test_liveness_needs_no_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_reports_disconnected_database(client, override_db, places_key):
    """A failing query marks the service unhealthy."""
    places_key("abc123")
    session = MagicMock()
    session.execute = AsyncMock(side_effect=ConnectionRefusedError("db down"))
    override_db(session)

    response = await client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"
    assert "venue_table" not in data


@pytest.mark.asyncio
async def test_readiness_ok_when_migrated_and_keyed(client, override_db, places_key):
    places_key("abc123")
    override_db(session_reporting(True))

    data = (await client.get("/health/ready")).json()

    assert data == {
        "status": "ok",
        "database": "connected",
        "venue_table": "present",
        "places_api_key": "configured",
    }


@pytest.mark.asyncio
async def test_readiness_degraded_without_places_key(client, override_db, places_key):
    places_key("")
    override_db(session_reporting(True))

    data = (await client.get("/health/ready")).json()

    assert data["status"] == "degraded"
    assert data["places_api_key"] == "missing"


@pytest.mark.asyncio
async def test_readiness_degraded_before_migration(client, override_db, places_key):
    places_key("abc123")
    override_db(session_reporting(False))

    data = (await client.get("/health/ready")).json()

    assert data["status"] == "degraded"
    assert data["venue_table"] == "missing"
