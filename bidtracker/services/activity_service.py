"""Activity service — company activity log.

Bid lifecycle events (bid_created, bid_updated) are written automatically by
bid_service; manual entries (note, call, email, meeting) come from the
company activity endpoint.

Usage:
    from bidtracker.services.activity_service import log_activity, list_activity
"""

import logging

from sqlalchemy.orm import Session

from ..models import ActivityLog, Company
from ..errors import NotFoundError

log = logging.getLogger("bidtracker.activity")

ACTIVITY_TYPES = ("note", "call", "email", "meeting", "bid_created", "bid_updated")


def log_activity(
    db: Session, company_id: int, user_id: int | None, activity_type: str, summary: str
) -> ActivityLog:
    """Stage an activity row. The caller owns the transaction and commits."""
    if activity_type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {activity_type}")
    entry = ActivityLog(
        company_id=company_id,
        user_id=user_id,
        activity_type=activity_type,
        summary=summary,
    )
    db.add(entry)
    return entry


def activity_to_dict(a: ActivityLog) -> dict:
    return {
        "id": a.id,
        "activityType": a.activity_type,
        "summary": a.summary,
        "user": {"id": a.user.id, "name": a.user.name} if a.user else None,
        "createdAt": a.created_at.isoformat() if a.created_at else None,
    }


def list_activity(db: Session, company_id: int, limit: int = 100) -> list[dict]:
    """Most recent activity first."""
    if not db.get(Company, company_id):
        raise NotFoundError("Company not found")
    rows = (
        db.query(ActivityLog)
        .filter(ActivityLog.company_id == company_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
    return [activity_to_dict(a) for a in rows]


def add_manual_activity(
    db: Session, company_id: int, user, activity_type: str, summary: str
) -> dict:
    if not db.get(Company, company_id):
        raise NotFoundError("Company not found")
    entry = log_activity(db, company_id, user.id, activity_type, summary)
    db.commit()
    db.refresh(entry)
    log.info(f"{user.email} logged {activity_type} on company {company_id}")
    return activity_to_dict(entry)
