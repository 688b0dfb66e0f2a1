"""Scope aggregation — derived bid status and total value.

Pure functions over a bid's scope collection. Nothing here is persisted:
list and detail reads call these on every request so the displayed
amount always matches the current scopes.

Accepts Scope rows, dicts ({"status", "cost"}) or bare status strings.
"""

SCOPE_STATUSES = ("Pending", "Won", "Lost")

# Least-resolved first: one outstanding item keeps the whole bid pending,
# and a loss outranks a win.
_STATUS_PRIORITY = ("Pending", "Lost", "Won")


def _field(scope, name: str):
    if isinstance(scope, dict):
        return scope.get(name)
    return getattr(scope, name, None)


def _status(scope) -> str | None:
    if isinstance(scope, str):
        return scope
    return _field(scope, "status")


def aggregate_scope_status(scopes) -> str:
    """Return Pending, Lost, Won or Unknown for a collection of scopes."""
    statuses = {_status(s) for s in scopes or ()}
    for status in _STATUS_PRIORITY:
        if status in statuses:
            return status
    return "Unknown"


def total_amount(scopes) -> float:
    """Sum of scope costs; a missing cost counts as zero."""
    return sum((_field(s, "cost") or 0) for s in scopes or ())
