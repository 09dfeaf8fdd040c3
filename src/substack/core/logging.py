"""
Substack logging - structured logging with structlog.

Every module logs through ``get_logger(__name__)`` with dotted event names
and keyword fields; the stack identity of the current run is bound once as
context so every log line carries it.

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=None,          │
        │                   service="substack")                      │
        │     ↓                                                      │
        │ structlog processor chain:                                 │
        │   1. TimeStamper (iso)                                     │
        │   2. merge_contextvars (stack, substack, unit)             │
        │   3. add_log_level / add_logger_name                       │
        │   4. add_service_metadata                                  │
        │   5. JSONRenderer (ECS names) or ConsoleRenderer           │
        └────────────────────────────────────────────────────────────┘

        Usage Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ logger = get_logger(__name__)                              │
        │ with LogContext(stack="dev", substack="build"):            │
        │     with log_step("dispatch.unit", unit="build"):          │
        │         ...                                                │
        │                                                            │
        │ DEBUG dispatch.unit.start unit=build                       │
        │ INFO  dispatch.unit.end   unit=build duration_ms=12.4      │
        └────────────────────────────────────────────────────────────┘

Examples:
    >>> from substack.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("reference.created", identity="dev.build")

Tags:
    logging, structlog, observability, substack
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "substack"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "substack",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Outputs go to stdout; logs stay on stderr.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        async with LogContext(stack="dev", substack="build"):
            logger.info("dispatch.unit.start")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())

    async def __aenter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    async def __aexit__(self, *args) -> None:
        unbind_context(*self._context.keys())


@contextmanager
def log_step(event: str, level: str = "info", **fields: Any) -> Iterator[dict[str, Any]]:
    """
    Log step start/end with timing.

    Logs ``<event>.start`` at DEBUG, then ``<event>.end`` with ``duration_ms``
    at ``level``, or ``<event>.error`` at ERROR before re-raising. The yielded
    dict collects extra fields for the end event.

    Usage:
        with log_step("dispatch.root", units=3) as step:
            aggregate = await collect()
            step["failed"] = len(aggregate.errors)
    """
    log = get_logger("substack.timing")
    extra: dict[str, Any] = {}
    log.debug(f"{event}.start", **fields)
    started = time.perf_counter()
    try:
        yield extra
    except Exception as e:
        log.error(
            f"{event}.error",
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            error_type=type(e).__name__,
            error_message=str(e),
            **fields,
        )
        raise
    getattr(log, level)(
        f"{event}.end",
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
        **fields,
        **extra,
    )


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    "log_step",
]
