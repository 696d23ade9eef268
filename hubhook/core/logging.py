"""Structured logging via structlog.

Configures structlog once at startup. The webhook router logs through
`structlog.get_logger()`; the other modules use `logging.getLogger()`
and share the same stream and level.

Renderer selection:
  debug=True : `ConsoleRenderer` for local development.
  debug=False: `JSONRenderer` for machine-parseable logs in production.

The `request_id` bound by RequestIdMiddleware is injected into every
structlog event emitted while handling a request.
"""

from __future__ import annotations

import logging
import sys

import structlog

from hubhook.core.middleware import get_request_id


def _inject_request_id(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject request_id from the middleware ContextVar."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog and stdlib logging for the process lifetime.

    Safe to call more than once.
    """
    level = logging.DEBUG if debug else logging.INFO

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_request_id,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
        stream=sys.stdout,
        level=level,
    )
