"""
Structured logging setup.

Configures structlog on top of the standard library logging module so
that client events carry their fields (host, request_id, status_code...)
either as JSON lines or as human-readable console output.
"""

import logging
import sys
from typing import Union

import structlog


def configure_logging(level: Union[int, str] = logging.INFO, json_output: bool = False) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Minimum level to emit
        json_output: Render JSON lines instead of console output
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
