# hookwire/log_config.py
"""Logging configuration for the hookwire library using Loguru.

This module provides a centralized function to configure the Loguru logger
with a standardized format, level, and sink, plus the tag format used by
every lifecycle log line.
"""

import sys

from loguru import logger

TAG_SEPARATOR = "::"


def configure_logging(level: str = "INFO", sink=sys.stderr):
    """
    Configures Loguru logger.

    Removes default handlers and adds a new one with the specified level and sink.

    Args:
        level: The minimum logging level (e.g., "DEBUG", "INFO", "WARNING").
        sink: The output sink (e.g., sys.stderr, "file.log").
    """
    logger.remove()
    logger.add(
        sink,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <magenta>{extra[tag]}</magenta> | <level>{message}</level>",
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=True,
    )
    logger.configure(extra={"tag": "hookwire"})
    logger.info(
        f"Loguru logger configured with level={level.upper()} writing to {sink}"
    )


def make_tag(log_name: str, section: str | None = None) -> str:
    """Joins a logging name and an optional section into a single tag.

    >>> make_tag("api", "GET https://example.com (Response Body)")
    'api::GET https://example.com (Response Body)'
    """
    if section is None:
        return log_name
    return f"{log_name}{TAG_SEPARATOR}{section}"
