"""
routers/charts.py — Dashboard metrics and monthly series

Range parameters `start`/`end` accept YYYY-MM-DD, MM/DD/YYYY or DD/MM/YYYY
(day-first only when the first part is over 12). A missing bound falls back
to the default window: the last 12 months ending today.

Called by: main.py (router mount)
Depends on: services/dashboard_service.py
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import current_policy, require_action
from ..errors import ValidationError
from ..models import User
from ..services import dashboard_service
from ..services.access_policy import AccessPolicy
from ..utils.dates import parse_query_date

router = APIRouter(prefix="/api/charts", tags=["charts"])


def _range(start: str | None, end: str | None) -> tuple[date, date]:
    parsed = []
    for name, raw in (("start", start), ("end", end)):
        value = parse_query_date(raw)
        if raw and value is None:
            raise ValidationError(f"Invalid {name} date: {raw}")
        parsed.append(value)
    return dashboard_service.resolve_range(parsed[0], parsed[1])


@router.get("/metrics")
async def metrics(
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return dashboard_service.get_metrics(db, user, policy)


@router.get("/bids-over")
async def bids_over(
    start: str | None = None,
    end: str | None = None,
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    lo, hi = _range(start, end)
    return dashboard_service.bids_over_time(db, user, policy, lo, hi)


@router.get("/value-over")
async def value_over(
    start: str | None = None,
    end: str | None = None,
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    lo, hi = _range(start, end)
    return dashboard_service.value_over_time(db, user, policy, lo, hi)


@router.get("/scope-totals")
async def scope_totals(
    start: str | None = None,
    end: str | None = None,
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    lo, hi = _range(start, end)
    return dashboard_service.scope_totals(db, user, policy, lo, hi)
