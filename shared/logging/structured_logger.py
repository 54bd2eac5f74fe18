"""Structured logging for the catalog service.

Every entry is an event name plus key-value pairs rendered as JSON (or as
colored console lines in text mode). Request middleware binds a
correlation ID so all entries of one request can be grouped.
"""

import logging
import sys
from typing import Dict, Optional

import structlog
from structlog.types import EventDict, Processor

# Driver loggers that are chatty at INFO (server selection, heartbeats).
_NOISY_LOGGERS = ("pymongo", "pymongo.serverSelection", "pymongo.topology", "pymongo.connection")

_static_fields: Dict[str, str] = {}


def add_static_fields(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the service name and environment onto each entry."""
    for key, value in _static_fields.items():
        event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines instead of console output
        service_name: Added to every entry as ``service``
        environment: Added to every entry as ``environment``
    """
    _static_fields.clear()
    if service_name:
        _static_fields["service"] = service_name
    if environment:
        _static_fields["environment"] = environment

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_static_fields,
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request(correlation_id: str) -> None:
    """Attach a request's correlation ID to every entry logged while serving it."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def unbind_request() -> None:
    """Drop the request context bound by ``bind_request``."""
    structlog.contextvars.unbind_contextvars("correlation_id")
