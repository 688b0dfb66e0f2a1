"""Shared rate limiter.

Storage comes from RATE_LIMIT_STORAGE_URI (e.g. redis://...) when set;
otherwise limits are kept in memory per worker.
"""

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

if settings.rate_limit_storage_uri:
    logger.info("Rate limiter using shared storage")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
    storage_uri=settings.rate_limit_storage_uri or "memory://",
)
