"""
services/bid_service.py — Bid CRUD with transactional scope replacement

Every read recomputes amount and scope status from the bid's current scopes
(services/aggregate.py); nothing derived is stored.

Business Rules:
- List: owner-scoped roles see only bids they own; filters AND together;
  search is a case-sensitive substring match on project, company or contact
  name; createdFrom/createdTo are inclusive (date-only createdTo covers the day)
- Per-bid operations: NotFoundError first, then the ownership gate
- Create: owner is the caller unless a privileged caller names another owner
- Update: delete all scopes, then update fields and insert the new scopes,
  all in one transaction. Any failure rolls back both phases
- Delete: scopes, notes, attachments, tag links and the bid go in one
  transaction; stored attachment files are removed after commit
- Referenced company/contact/estimator must exist (NotFoundError)

Called by: routers/bids.py, services/import_service.py
Depends on: models, services/access_policy.py, services/aggregate.py,
            services/activity_service.py, services/tag_service.py, file_utils.py
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ..errors import NotFoundError
from ..file_utils import remove_stored_file, store_upload
from ..models import Bid, BidAttachment, Company, Contact, Note, Scope, User
from ..utils.dates import end_of_day, start_of_day
from ..utils.file_validation import validate_upload
from .access_policy import AccessPolicy, authorize_record
from .activity_service import log_activity
from .aggregate import aggregate_scope_status, total_amount
from .tag_service import resolve_tags, tag_to_dict

log = logging.getLogger("bidtracker.bids")


# ── Serialization ────────────────────────────────────────────────────


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _user_ref(u: User | None) -> dict | None:
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email}


def bid_to_summary(bid: Bid) -> dict:
    """List row. amount/scopeStatus come from the live scope set."""
    return {
        "id": bid.id,
        "projectName": bid.project_name,
        "clientName": bid.client_company.name if bid.client_company else "—",
        "amount": total_amount(bid.scopes),
        "proposalDate": _iso(bid.proposal_date),
        "dueDate": _iso(bid.due_date),
        "followUpOn": _iso(bid.follow_up_on),
        "scopeStatus": aggregate_scope_status(bid.scopes),
        "bidStatus": bid.bid_status,
        "estimator": _user_ref(bid.estimator),
        "lastModifiedBy": _user_ref(bid.last_modified_by),
        "lastModifiedAt": _iso(bid.last_modified_at),
    }


def scope_to_dict(s: Scope) -> dict:
    return {"id": s.id, "name": s.name, "cost": s.cost, "status": s.status}


def note_to_dict(n: Note) -> dict:
    return {
        "id": n.id,
        "body": n.body,
        "author": _user_ref(n.author),
        "createdAt": _iso(n.created_at),
    }


def attachment_to_dict(a) -> dict:
    return {
        "id": a.id,
        "originalName": a.original_name,
        "contentType": a.content_type,
        "sizeBytes": a.size_bytes,
        "createdAt": _iso(a.created_at),
    }


def bid_to_dict(bid: Bid) -> dict:
    """Full detail view of one bid."""
    company = bid.client_company
    contact = bid.contact
    return {
        "id": bid.id,
        "projectName": bid.project_name,
        "clientCompanyId": bid.client_company_id,
        "clientCompany": {"id": company.id, "name": company.name} if company else None,
        "contactId": bid.contact_id,
        "contact": (
            {"id": contact.id, "name": contact.name, "email": contact.email, "phone": contact.phone}
            if contact
            else None
        ),
        "estimatorId": bid.estimator_id,
        "estimator": _user_ref(bid.estimator),
        "ownerId": bid.owner_id,
        "proposalDate": _iso(bid.proposal_date),
        "dueDate": _iso(bid.due_date),
        "followUpOn": _iso(bid.follow_up_on),
        "jobLocation": bid.job_location,
        "leadSource": bid.lead_source,
        "bidStatus": bid.bid_status,
        "amount": total_amount(bid.scopes),
        "scopeStatus": aggregate_scope_status(bid.scopes),
        "scopes": [scope_to_dict(s) for s in bid.scopes],
        "notes": [note_to_dict(n) for n in bid.notes],
        "tags": [tag_to_dict(t) for t in bid.tags],
        "attachments": [attachment_to_dict(a) for a in bid.attachments],
        "lastModifiedBy": _user_ref(bid.last_modified_by),
        "lastModifiedAt": _iso(bid.last_modified_at),
        "createdAt": _iso(bid.created_at),
        "updatedAt": _iso(bid.updated_at),
    }


# ── Queries ──────────────────────────────────────────────────────────


def visible_bids_query(db: Session, user, policy: AccessPolicy):
    """Bids the caller may list. Owner-scoped roles get only their own."""
    q = db.query(Bid)
    if policy.is_owner_scoped(user.role):
        q = q.filter(Bid.owner_id == user.id)
    return q


def list_bids(
    db: Session,
    user,
    policy: AccessPolicy,
    status: str | None = None,
    search: str | None = None,
    created_from: date | datetime | None = None,
    created_to: date | datetime | None = None,
) -> list[dict]:
    q = visible_bids_query(db, user, policy).options(
        selectinload(Bid.scopes),
        joinedload(Bid.client_company),
        joinedload(Bid.estimator),
        joinedload(Bid.last_modified_by),
    )

    if status:
        q = q.filter(Bid.bid_status == status)

    search = (search or "").strip()
    if search:
        q = q.filter(
            or_(
                Bid.project_name.contains(search, autoescape=True),
                Bid.client_company.has(Company.name.contains(search, autoescape=True)),
                Bid.contact.has(Contact.name.contains(search, autoescape=True)),
            )
        )

    if created_from is not None:
        if not isinstance(created_from, datetime):
            created_from = start_of_day(created_from)
        q = q.filter(Bid.created_at >= created_from)
    if created_to is not None:
        if not isinstance(created_to, datetime):
            created_to = end_of_day(created_to)
        q = q.filter(Bid.created_at <= created_to)

    bids = q.order_by(Bid.updated_at.desc(), Bid.id.desc()).all()
    return [bid_to_summary(b) for b in bids]


def _load_bid(db: Session, bid_id: int) -> Bid:
    bid = db.get(Bid, bid_id)
    if bid is None:
        raise NotFoundError("Bid not found")
    return bid


def get_bid(db: Session, user, policy: AccessPolicy, bid_id: int) -> dict:
    bid = _load_bid(db, bid_id)
    authorize_record(policy, user, "read", bid.owner_id)
    return bid_to_dict(bid)


# ── Writes ───────────────────────────────────────────────────────────


def _check_references(db: Session, data) -> None:
    """Raise NotFoundError for a missing company, contact or estimator."""
    if not db.get(Company, data.client_company_id):
        raise NotFoundError("Company not found")
    if data.contact_id is not None and not db.get(Contact, data.contact_id):
        raise NotFoundError("Contact not found")
    if data.estimator_id is not None and not db.get(User, data.estimator_id):
        raise NotFoundError("Estimator not found")


def _resolve_owner(db: Session, user, policy: AccessPolicy, requested: int | None) -> int:
    """Privileged callers may assign a bid to someone else."""
    if requested is None or requested == user.id or not policy.is_privileged(user.role):
        return user.id
    if not db.get(User, requested):
        raise NotFoundError("Owner not found")
    return requested


def _apply_fields(bid: Bid, data, user) -> None:
    bid.project_name = data.project_name
    bid.client_company_id = data.client_company_id
    bid.contact_id = data.contact_id
    bid.estimator_id = data.estimator_id
    bid.proposal_date = data.proposal_date
    bid.due_date = data.due_date
    bid.follow_up_on = data.follow_up_on
    bid.job_location = data.job_location
    bid.lead_source = data.lead_source
    bid.bid_status = data.bid_status
    bid.last_modified_by_id = user.id
    bid.last_modified_at = datetime.now(timezone.utc)


def _delete_scopes(db: Session, bid: Bid) -> None:
    """Phase 1 of a replace: drop every existing scope row."""
    bid.scopes.clear()
    db.flush()


def _insert_scopes(db: Session, bid: Bid, scopes) -> None:
    """Phase 2 of a replace: insert the sanitized scope set."""
    for s in scopes:
        bid.scopes.append(Scope(name=s.name, cost=s.cost, status=s.status))
    db.flush()


def create_bid(db: Session, user, policy: AccessPolicy, data) -> dict:
    """Persist a bid with its scopes and tags in one commit."""
    _check_references(db, data)
    owner_id = _resolve_owner(db, user, policy, data.owner_id)

    bid = Bid(owner_id=owner_id)
    _apply_fields(bid, data, user)
    try:
        db.add(bid)
        bid.tags = resolve_tags(db, data.tags)
        _insert_scopes(db, bid, data.scopes)
        log_activity(
            db, bid.client_company_id, user.id, "bid_created", f"Bid created: {bid.project_name}"
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(bid)
    log.info(f"Bid {bid.id} created by {user.email} with {len(data.scopes)} scopes")
    return bid_to_dict(bid)


def update_bid(db: Session, user, policy: AccessPolicy, bid_id: int, data) -> dict:
    """Full replace. Scope delete and re-insert share one transaction."""
    bid = _load_bid(db, bid_id)
    authorize_record(policy, user, "update", bid.owner_id)
    _check_references(db, data)
    owner_id = bid.owner_id
    if data.owner_id is not None and policy.is_privileged(user.role):
        owner_id = _resolve_owner(db, user, policy, data.owner_id)

    try:
        _delete_scopes(db, bid)
        _apply_fields(bid, data, user)
        bid.owner_id = owner_id
        bid.tags = resolve_tags(db, data.tags)
        _insert_scopes(db, bid, data.scopes)
        log_activity(
            db, bid.client_company_id, user.id, "bid_updated", f"Bid updated: {bid.project_name}"
        )
        db.commit()
    except Exception:
        db.rollback()
        log.warning(f"Bid {bid_id} update rolled back")
        raise
    db.refresh(bid)
    log.info(f"Bid {bid.id} updated by {user.email}")
    return bid_to_dict(bid)


def delete_bid(db: Session, user, policy: AccessPolicy, bid_id: int) -> None:
    bid = _load_bid(db, bid_id)
    authorize_record(policy, user, "delete", bid.owner_id)
    stored_paths = [a.stored_path for a in bid.attachments]

    try:
        # Scopes, notes and attachments go with the bid (delete-orphan cascade)
        bid.tags = []
        db.delete(bid)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for path in stored_paths:
        remove_stored_file(path)
    log.info(f"Bid {bid_id} deleted by {user.email}")


def add_note(db: Session, user, policy: AccessPolicy, bid_id: int, body: str) -> dict:
    bid = _load_bid(db, bid_id)
    authorize_record(policy, user, "update", bid.owner_id)
    note = Note(bid_id=bid.id, author_id=user.id, body=body)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note_to_dict(note)


def add_attachment(
    db: Session,
    user,
    policy: AccessPolicy,
    bid_id: int,
    content: bytes,
    filename: str | None,
    content_type: str | None = None,
) -> dict:
    bid = _load_bid(db, bid_id)
    authorize_record(policy, user, "update", bid.owner_id)
    validate_upload(content, filename)

    path = store_upload(content, filename, f"bids/{bid.id}")
    attachment = BidAttachment(
        bid_id=bid.id,
        original_name=filename,
        stored_path=path,
        content_type=content_type,
        size_bytes=len(content),
        uploaded_by_id=user.id,
    )
    try:
        db.add(attachment)
        db.commit()
    except Exception:
        db.rollback()
        remove_stored_file(path)
        raise
    db.refresh(attachment)
    log.info(f"Attachment {filename!r} added to bid {bid.id}")
    return attachment_to_dict(attachment)
