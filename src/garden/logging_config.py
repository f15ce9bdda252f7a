"""Structured logging setup.

Reads ``GARDEN_LOG_LEVEL`` (DEBUG | INFO | WARNING | ERROR, default INFO)
and ``GARDEN_LOG_FORMAT`` (console | json, default console) unless explicit
values are passed::

    from garden.logging_config import configure_logging
    configure_logging(level="DEBUG", format="json")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Literal

import structlog

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,  # noqa: A002
    force: bool = False,
) -> None:
    """Configure structlog and stdlib logging once; later calls are no-ops unless *force*."""
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("GARDEN_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("GARDEN_LOG_FORMAT", "console")).lower()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        log_level = "INFO"

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )
    _configured = True
