"""
structlog setup for the market status engine.

Entry points call ``configure_logging`` (or ``configure_from_params`` with the
``logging`` section of the engine config) once at startup; library modules
only ever call ``get_logger`` / ``get_state_logger``.
"""
import logging
import sys
from enum import Enum
from typing import IO, Any, Optional

import structlog
from structlog.types import EventDict, FilteringBoundLogger, WrappedLogger

from ..config.defaults import LoggingParams


def _enum_values(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Render enum members (MarketStatus and friends) as their plain value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    stream: Optional[IO[str]] = None
) -> None:
    """
    Route structlog through stdlib logging with the engine's processor chain.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Emit one JSON object per line instead of console output
        include_timestamp: Add an ISO8601 UTC ``timestamp`` field
        stream: Output stream, stdout by default
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=stream or sys.stdout,
        format="%(message)s",
        force=True
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _enum_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_params(params: LoggingParams) -> None:
    """Apply the ``logging`` section of an EngineConfig."""
    configure_logging(level=params.level, format_json=params.format_json)


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """Logger for the status machine; every entry is tagged for the audit trail."""
    return get_logger(name).bind(
        subsystem="market_status",
        audit_trail=True
    )


def log_state_transition(
    logger: FilteringBoundLogger,
    instrument: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Emit the single INFO record written for each MarketStatus change.

    Args:
        logger: Logger to write through, normally a state logger
        instrument: Instrument whose status changed
        from_state: Previous status value, or "none" before the first reading
        to_state: New status value
        trigger: Decision that caused the change (e.g. "freeze_confirmed")
        context: Price, counters and timestamp at the moment of the change
    """
    bound_logger = logger.bind(
        instrument=instrument,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Market status transition")
