"""
logging_config.py — Loguru setup for the Bid Tracker API

Everything that logs in the process (our services, uvicorn, SQLAlchemy,
APScheduler, fastapi-mail) ends up in one Loguru pipeline, tagged with the
8-char request id that request_id_middleware binds via logger.contextualize.

Environment:
- LOG_LEVEL   minimum level for every sink (default INFO)
- APP_ENV     "production" switches stdout to serialized JSON lines
- LOG_FILE    production only: also write JSON lines to this file, rotated
              at 50 MB and gzipped, kept 7 days

Called by: bidtracker/main.py (import time, before the app is built)
Depends on: loguru
"""

import logging
import os
import sys

from loguru import logger

DEV_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)

# Libraries that are chatty at INFO; their warnings still come through
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "apscheduler")


def setup_logging() -> None:
    """(Re)configure sinks from the environment. Safe to call more than once."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    production = os.getenv("APP_ENV", "development").lower() == "production"

    logger.remove()
    # Lines logged outside a request still render the request id slot
    logger.configure(extra={"request_id": "-"})

    if production:
        logger.add(sys.stdout, level=level, format="{message}", serialize=True)
        log_file = os.getenv("LOG_FILE")
        if log_file:
            logger.add(
                log_file,
                level=level,
                serialize=True,
                rotation="50 MB",
                retention="7 days",
                compression="gz",
            )
    else:
        logger.add(sys.stdout, level=level, format=DEV_FORMAT, colorize=True)

    logging.basicConfig(handlers=[StdlibToLoguru()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging ready: level={level} json={production}")


class StdlibToLoguru(logging.Handler):
    """Forward stdlib `logging` records into Loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
