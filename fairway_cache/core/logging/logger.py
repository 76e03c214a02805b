#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging for the cache layers with:
- Consumer scope correlation (which screen/feature triggered a cache event)
- Stage identifiers for the cache lifecycle
- JSON formatting for log aggregation
- Email redaction (user-scoped cache keys may carry an address)

Architectural Decision: structlog for production logging
- Context-aware logging with automatic field injection
- JSON output for log aggregation
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from fairway_cache.core.config.settings import get_settings

# Context variable for the active consumer scope (e.g. "profile", "news_list")
scope_ctx: ContextVar[str | None] = ContextVar("cache_scope", default=None)

_EMAIL_RE = re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b")


def add_scope(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add the consumer scope to the log event from the context variable.

    STAGE-L.1: Scope injection
    """
    scope = scope_ctx.get()
    if scope:
        event_dict["scope"] = scope
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_pii(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact email addresses from the event and from cache key fields.

    STAGE-L.3: PII redaction
    """
    for field in ("event", "cache_key", "raw_key"):
        value = event_dict.get(field)
        if isinstance(value, str):
            event_dict[field] = _EMAIL_RE.sub("[EMAIL]", value)
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add log level name to event dict.

    STAGE-L.4: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_scope,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_pii,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        BoundLogger: Structured logger instance

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage="1.0_STORE_READ")
    """
    return structlog.get_logger(name)


def set_scope(scope: str) -> None:
    """
    Set the consumer scope for the current context.

    Args:
        scope: Screen or feature name, e.g. "profile"
    """
    scope_ctx.set(scope)


def get_scope() -> str | None:
    """Get the consumer scope of the current context."""
    return scope_ctx.get()


def clear_scope() -> None:
    """Clear the consumer scope from the current context."""
    scope_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (a ``Stage`` member or plain string)
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, Stage.STORE_READ, "Cache hit", cache_key="news_list")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=getattr(stage, "value", stage), **kwargs)
