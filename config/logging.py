#!/usr/bin/env python3
"""
backup-drive - structlog configuration.

Centralised structlog setup. Logs go to stderr so they never interleave with
the progress stream printed on stdout.

Usage:
    from config.logging import configure_logging

    # At application start
    configure_logging()

    # In modules
    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("message", key=value)
"""

import logging
import os
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger

APP_NAME = "backup-drive"


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add application context to every log entry.

    Adds:
    - app: "backup-drive"
    - pid: current process id (unless already bound)
    """
    event_dict["app"] = APP_NAME
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    enable_colors: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog for backup-drive.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, JSON logs. If False, human-readable logs
        enable_colors: If True, colorize console logs (dev only)
        stream: Output stream (default: stderr)

    Example:
        >>> configure_logging(level="DEBUG", json_format=False, enable_colors=True)
    """
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    # Standard library logging; force=True so repeated CLI invocations reconfigure
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=log_level,
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_colors))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_from_env(level: Optional[str] = None) -> None:
    """
    Configure logging from LOG_LEVEL / LOG_FORMAT environment variables.

    Args:
        level: Explicit level, overrides LOG_LEVEL
    """
    log_level = level or os.getenv("LOG_LEVEL", "WARNING")
    json_logs = os.getenv("LOG_FORMAT", "console") == "json"
    configure_logging(level=log_level, json_format=json_logs)
