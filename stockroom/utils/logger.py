"""
Structured logging setup.

Loggers are structlog bound loggers writing through the standard logging
module, so call sites attach context as keyword arguments:

    logger = get_logger(__name__)
    logger.info("User registered", user_id=user.id)
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure structlog and the root handler.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        fmt: "json" for machine-readable lines, "console" for local development
    """
    level_no = getattr(logging, (level or "INFO").upper(), logging.INFO)
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if (fmt or "").lower() == "console"
        else structlog.processors.JSONRenderer()
    )

    # No-op when the root logger already has handlers (e.g. under uvicorn or pytest)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level_no)
    logging.getLogger().setLevel(level_no)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None):
    """Get a structlog logger for the given module name"""
    return structlog.get_logger(name)
