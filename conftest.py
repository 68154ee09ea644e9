"""Shared pytest fixtures for BarCompass tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from barcompass.core.config import get_settings
from barcompass.core.database import Base, get_session_maker
from barcompass.features.venues import models as venue_models  # noqa: F401
from barcompass.main import app


@pytest.fixture(autouse=True)
def reset_dependency_overrides():
    """Drop any dependency override a test installed on the shared app."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    """HTTP client bound to the operator API in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def db_session():
    """Session on a freshly created venue schema.

    Requires PostgreSQL (docker-compose up -d); only integration tests use it.
    """
    engine = create_async_engine(get_settings().database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    try:
        async with get_session_maker(engine)() as session:
            yield session
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()
