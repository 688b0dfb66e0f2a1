"""
services/dashboard_service.py — Pipeline metrics and monthly chart series

Business Rules:
- Metrics run over every bid the caller may list (owner-scoped roles: own bids)
- activePipelineValue/pendingCount count Pending scopes on any bid
- Won/Lost counts and the win ratio only look at bids whose status is Active
- Chart series date a bid by proposal date, falling back to its created date
- Every YYYY-MM bucket in the range appears, zero-filled

Called by: routers/charts.py
Depends on: models, services/bid_service.py (visibility), utils/dates.py
"""

import logging
from datetime import date

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from ..errors import ValidationError
from ..models import Bid
from ..utils.dates import default_chart_range, end_of_day, month_key, month_span, start_of_day
from .access_policy import AccessPolicy
from .bid_service import visible_bids_query

log = logging.getLogger("bidtracker.dashboard")


def get_metrics(db: Session, user, policy: AccessPolicy) -> dict:
    bids = visible_bids_query(db, user, policy).options(selectinload(Bid.scopes)).all()

    pending = 0.0
    pending_count = 0
    won_active = 0.0
    won_count = 0
    lost_count = 0
    for b in bids:
        active = b.bid_status == "Active"
        for s in b.scopes:
            cost = s.cost or 0
            if s.status == "Pending":
                pending += cost
                pending_count += 1
            elif active and s.status == "Won":
                won_active += cost
                won_count += 1
            elif active and s.status == "Lost":
                lost_count += 1

    resolved = won_count + lost_count
    return {
        "activePipelineValue": pending,
        "pendingCount": pending_count,
        "totalValueWonActiveBids": won_active,
        "activeWonCount": won_count,
        "activeLostCount": lost_count,
        "activeWinLossRatio": won_count / resolved if resolved else 0,
    }


def resolve_range(start: date | None, end: date | None, today: date | None = None):
    """Fill missing bounds with the default 12-month window ending today."""
    default_start, default_end = default_chart_range(today or date.today())
    start = start or default_start
    end = end or default_end
    if start > end:
        raise ValidationError("start must be on or before end")
    return start, end


def chart_date(bid: Bid) -> date | None:
    if bid.proposal_date:
        return bid.proposal_date
    return bid.created_at.date() if bid.created_at else None


def _bids_in_range(db: Session, user, policy: AccessPolicy, start: date, end: date) -> list[Bid]:
    q = visible_bids_query(db, user, policy).filter(
        or_(
            and_(Bid.proposal_date >= start, Bid.proposal_date <= end),
            and_(
                Bid.proposal_date.is_(None),
                Bid.created_at >= start_of_day(start),
                Bid.created_at <= end_of_day(end),
            ),
        )
    )
    rows = q.options(selectinload(Bid.scopes)).order_by(Bid.created_at, Bid.id).all()
    result = []
    for b in rows:
        d = chart_date(b)
        if d is not None and start <= d <= end:
            result.append(b)
    return result


def bids_over_time(db: Session, user, policy: AccessPolicy, start: date, end: date) -> list[dict]:
    buckets = dict.fromkeys(month_span(start, end), 0)
    for b in _bids_in_range(db, user, policy, start, end):
        buckets[month_key(chart_date(b))] += 1
    return [{"month": m, "count": c} for m, c in buckets.items()]


def value_over_time(db: Session, user, policy: AccessPolicy, start: date, end: date) -> list[dict]:
    buckets = dict.fromkeys(month_span(start, end), 0.0)
    for b in _bids_in_range(db, user, policy, start, end):
        buckets[month_key(chart_date(b))] += sum(s.cost or 0 for s in b.scopes)
    return [{"month": m, "total": t} for m, t in buckets.items()]


def scope_totals(db: Session, user, policy: AccessPolicy, start: date, end: date) -> list[dict]:
    """Won value per scope name, largest first."""
    totals: dict[str, float] = {}
    for b in _bids_in_range(db, user, policy, start, end):
        for s in b.scopes:
            if s.status == "Won":
                totals[s.name] = totals.get(s.name, 0.0) + (s.cost or 0)
    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"scope": name, "total": total} for name, total in ranked]
