"""
Structured logging for the fossil store.

All modules log through structlog with snake_case event names and key/value
fields, so a run of the CLI or a producer script yields either readable
console lines (interactive) or JSON lines (CI, log shipping).

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="fossil")
              │
              ▼
        processors: TimeStamper → add_log_level
                    → StackInfoRenderer → set_exc_info → service metadata
                    → (JSON: ECS field names → JSONRenderer)
                    → (console: ConsoleRenderer)

Examples:
    >>> from fossil.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("entry_created", fossil_id="fossil_01h...", type="insight")

Tags:
    logging, structlog, observability, fossil-store
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "fossil"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _ecs_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename fields to Elastic Common Schema names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # resolved per logger so a swapped sys.stderr (CLI runners, pytest) is honoured;
    # stdout is reserved for command output
    return structlog.PrintLogger(sys.stderr)


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "fossil",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name included in every event
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_ecs_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
]
