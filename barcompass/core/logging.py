"""Structured logging with structlog.

Every event carries the ``request_id`` of the API request or the ``run_id``
of the ingestion run that produced it. Log lines go to stderr so CLI
reports on stdout stay readable.
"""

import logging
import re
import sys
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any, TextIO

import structlog

from barcompass.core.config import get_settings

# Context variables for correlation
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)

# httpx error messages include the full request URL, key included
_KEY_PARAM = re.compile(r"([?&]key=)[^&\s'\"]+")


def add_correlation_ids(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add request_id and run_id from context to log events."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    run_id = run_id_ctx.get()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def redact_api_keys(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Mask ``key=`` query parameters in string values."""
    for field, value in event_dict.items():
        if isinstance(value, str) and "key=" in value:
            event_dict[field] = _KEY_PARAM.sub(r"\1***", value)
    return event_dict


def configure_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure structlog for the API and the CLI scripts.

    Args:
        level: Level override, e.g. "DEBUG" for ``--verbose``.
        stream: Output stream; stderr by default.
    """
    settings = get_settings()

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None and sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_correlation_ids,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_api_keys,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level or settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger; correlation ids are added at render time."""
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
