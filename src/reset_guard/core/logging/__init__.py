"""
Logging configuration module for structured logging.

This module configures logging using structlog: JSON output for production
and human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion and filtering
- JSON/Console output based on settings
- Logger caching
"""

import logging
import sys
from typing import Optional

import structlog

from reset_guard.core.config.settings import settings


def configure_logging(log_level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configures the logging system.

    This function sets up structlog with:
    1. ISO format timestamps
    2. Log level and logger name inclusion
    3. JSON formatting when json_logs (or LOG_JSON) is true
    4. Console formatting otherwise
    5. Standard library logger factory and bound logger

    Args:
        log_level: Level name, defaults to settings.LOG_LEVEL.
        json_logs: Render JSON lines, defaults to settings.LOG_JSON.
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)
    use_json = settings.LOG_JSON if json_logs is None else json_logs

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()
