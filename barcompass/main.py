"""Operator API for BarCompass venue ingestion.

Run with ``barcompass-api`` or ``uvicorn barcompass.main:app``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from barcompass.core.config import Settings, get_settings
from barcompass.core.database import dispose_engine
from barcompass.core.exceptions import register_exception_handlers
from barcompass.core.health import router as health_router
from barcompass.core.logging import configure_logging, get_logger
from barcompass.core.middleware import RequestIdMiddleware
from barcompass.features.ingestion.routes import router as ingestion_router
from barcompass.features.venues.routes import router as venues_router

logger = get_logger(__name__)

# Journal web app dev servers
DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup and release pooled connections on shutdown."""
    settings = get_settings()

    configure_logging()
    logger.info(
        "app.startup_completed",
        app_name=settings.app_name,
        app_env=settings.app_env,
        debug=settings.debug,
        places_api_key_configured=bool(settings.places_api_key),
    )

    yield

    await dispose_engine()
    logger.info("app.shutdown_completed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to build from; ``get_settings()`` when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Venue lookup, audit and batch upsert for the cocktail journal",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # First added = outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=DEV_ORIGINS if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(venues_router)
    app.include_router(ingestion_router)

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "barcompass.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_config=None,
    )
