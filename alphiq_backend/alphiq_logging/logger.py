"""
Structured logging for the dashboard API: one JSON object per line.

Every record carries timestamp (ISO 8601, UTC), level, logger, event_type and
whatever request context the HTTP middleware bound for the current request
(method, path, client_ip). Modules call get_logger(__name__) and log a
snake_case event name plus keyword context:

    logger.info("score_computed", address=addr, total_score=512, title="Security Scout")

LOG_FORMAT=console switches to a human-readable renderer for local runs.
No alphiq_backend imports here; every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's 'event' becomes event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog(level: int = LOG_LEVEL_VALUE, fmt: str = LOG_FORMAT) -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors += [_normalize_event, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str, name: str = "alphiq_backend") -> structlog.BoundLogger:
    """Logger with the wallet address bound to every call."""
    return get_logger(name).bind(address=address)


def bind_request_context(**context: Any) -> None:
    """Attach key/values to every log line emitted while handling the current request."""
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
