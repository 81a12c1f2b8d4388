"""
Structured logging setup.

All modules log through ``structlog.get_logger(__name__)`` with snake_case
event names and key/value context. This module wires structlog onto the
standard library logger so third-party output (aiohttp, websockets) lands
in the same stream.
"""

import logging

import structlog

from retail_client.config.models import LogFormat, LogLevel


def setup_logging(
    level: LogLevel | str = LogLevel.INFO,
    fmt: LogFormat | str = LogFormat.JSON,
) -> None:
    """
    Configure structured logging.

    Args:
        level: Log level name.
        fmt: ``json`` for one JSON object per line, ``text`` for a
            human-readable console format.
    """
    level_name = LogLevel(str(getattr(level, "value", level)).upper()).value
    renderer = (
        structlog.dev.ConsoleRenderer()
        if LogFormat(getattr(fmt, "value", fmt)) == LogFormat.TEXT
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level_name),
    )

    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(max(logging.INFO, getattr(logging, level_name)))
