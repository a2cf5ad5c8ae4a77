"""Centralized logging configuration."""

import logging

from config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

# Per-request chatter from the DB layer, the quote fetch client and the
# refresh scheduler; their warnings still come through.
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "apscheduler",
)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets root logger level from settings.LOG_LEVEL and turns the
    QUIET_LOGGERS down to WARNING. Safe to call again after settings
    change; existing root handlers are replaced.
    """
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        level=getattr(logging, settings.LOG_LEVEL),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
