"""structlog configuration shared by every autotable module."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from autotable.config import AutotableConfig


def configure_logging(log_level: str = "WARNING", json_output: bool = False) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, render JSON lines; otherwise human-readable console output
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_from_config(config: AutotableConfig) -> None:
    """Apply the log level and renderer carried by ``config``."""
    configure_logging(log_level=config.log_level, json_output=config.log_json)


# Initialize logging on module import
configure_from_config(AutotableConfig.from_env())


def get_logger(name: str) -> Any:
    """Get a configured structlog logger bound to ``name``."""
    return structlog.get_logger(name)
