"""Liveness and readiness endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from barcompass.core.config import get_settings
from barcompass.core.database import get_db
from barcompass.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

HealthStatus = Literal["ok", "degraded", "unhealthy"]


class HealthResponse(BaseModel):
    """Service health.

    ``degraded`` means venue reads may work but ingestion will not: the
    places API key is missing or the venue table has not been migrated.
    """

    status: HealthStatus
    database: Literal["connected", "disconnected"] | None = None
    venue_table: Literal["present", "missing"] | None = None
    places_api_key: Literal["configured", "missing"] | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse, response_model_exclude_none=True)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Check database connectivity, the venue table and places credentials."""
    key_state: Literal["configured", "missing"] = (
        "configured" if get_settings().places_api_key else "missing"
    )

    try:
        result = await db.execute(text("SELECT to_regclass('public.venue') IS NOT NULL"))
        table_present = bool(result.scalar())
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return HealthResponse(
            status="unhealthy", database="disconnected", places_api_key=key_state
        )

    status: HealthStatus = "ok" if table_present and key_state == "configured" else "degraded"
    logger.info(
        "health.readiness_checked",
        status=status,
        venue_table=table_present,
        places_api_key=key_state,
    )
    return HealthResponse(
        status=status,
        database="connected",
        venue_table="present" if table_present else "missing",
        places_api_key=key_state,
    )
