"""Core infrastructure: config, database, logging, middleware, exceptions."""

from barcompass.core.config import Settings, get_settings
from barcompass.core.database import Base, get_db
from barcompass.core.logging import get_logger, request_id_ctx, run_id_ctx

__all__ = [
    "Base",
    "Settings",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
    "run_id_ctx",
]
