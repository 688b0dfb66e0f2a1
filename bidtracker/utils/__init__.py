"""Shared utility helpers used across routers and services."""

import math


def safe_int(v):
    """Safely convert a value to int, returning None on failure."""
    if v is None:
        return None
    try:
        return int(v)
    except (ValueError, TypeError):
        return None


def to_cost(v) -> float:
    """Coerce a cost to a non-negative float; missing, invalid or negative → 0.

    Strings may carry thousands separators or spaces ("1,250 000").
    """
    if v is None or isinstance(v, bool):
        return 0.0
    if isinstance(v, str):
        v = v.replace(",", "").replace(" ", "")
        if not v:
            return 0.0
    try:
        n = float(v)
    except (ValueError, TypeError):
        return 0.0
    if math.isnan(n) or math.isinf(n) or n < 0:
        return 0.0
    return n
