"""Company service — client companies, their tags and attachments.

Business Rules:
- Company names are unique case-insensitively (DuplicateError → 409)
- A company referenced by any bid cannot be deleted (ConflictError → 400)
- won/lost totals sum Won/Lost scope costs across all of the company's bids
- Deleting a company removes its contacts, tag links, attachments and activity
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..errors import ConflictError, DuplicateError, NotFoundError
from ..file_utils import remove_stored_file, store_upload
from ..models import Bid, Company, CompanyAttachment, Tag, User
from ..utils.file_validation import validate_upload
from .activity_service import activity_to_dict
from .aggregate import aggregate_scope_status, total_amount
from .bid_service import attachment_to_dict
from .tag_service import get_or_create_tag, tag_to_dict

log = logging.getLogger("bidtracker.companies")


def _won_lost(company: Company) -> tuple[float, float]:
    won = lost = 0.0
    for bid in company.bids:
        for s in bid.scopes:
            if s.status == "Won":
                won += s.cost or 0
            elif s.status == "Lost":
                lost += s.cost or 0
    return won, lost


def list_companies(db: Session) -> list[dict]:
    rows = (
        db.query(Company)
        .options(selectinload(Company.bids).selectinload(Bid.scopes))
        .order_by(Company.name)
        .all()
    )
    result = []
    for c in rows:
        won, lost = _won_lost(c)
        result.append(
            {
                "id": c.id,
                "name": c.name,
                "projects": [{"id": b.id, "name": b.project_name} for b in c.bids],
                "won": won,
                "lost": lost,
            }
        )
    return result


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company not found")
    return company


def _find_by_name(db: Session, name: str, exclude_id: int | None = None) -> Company | None:
    q = db.query(Company).filter(func.lower(Company.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Company.id != exclude_id)
    return q.first()


def _check_manager(db: Session, user_id: int | None) -> None:
    if user_id is not None and not db.get(User, user_id):
        raise NotFoundError("Account manager not found")


def company_to_dict(c: Company) -> dict:
    """Detail view: contacts, tags, attachments, recent activity and bids."""
    won, lost = _won_lost(c)
    manager = c.account_manager
    return {
        "id": c.id,
        "name": c.name,
        "website": c.website,
        "phone": c.phone,
        "address": c.address,
        "notes": c.notes,
        "accountManager": (
            {"id": manager.id, "name": manager.name, "email": manager.email} if manager else None
        ),
        "contacts": [
            {"id": ct.id, "name": ct.name, "email": ct.email, "phone": ct.phone, "title": ct.title}
            for ct in c.contacts
        ],
        "tags": [tag_to_dict(t) for t in c.tags],
        "attachments": [attachment_to_dict(a) for a in c.attachments],
        "activity": [activity_to_dict(a) for a in c.activities[:20]],
        "bids": [
            {
                "id": b.id,
                "projectName": b.project_name,
                "bidStatus": b.bid_status,
                "amount": total_amount(b.scopes),
                "scopeStatus": aggregate_scope_status(b.scopes),
            }
            for b in c.bids
        ],
        "won": won,
        "lost": lost,
        "createdAt": c.created_at.isoformat() if c.created_at else None,
    }


def get_company(db: Session, company_id: int) -> dict:
    return company_to_dict(_get_company(db, company_id))


def create_company(db: Session, data, user) -> dict:
    if _find_by_name(db, data.name):
        raise DuplicateError("Company already exists")
    _check_manager(db, data.account_manager_id)
    company = Company(**data.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)
    log.info(f"Company {company.name!r} created by {user.email}")
    return company_to_dict(company)


def update_company(db: Session, company_id: int, data) -> dict:
    company = _get_company(db, company_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("name") and _find_by_name(db, updates["name"], exclude_id=company.id):
        raise DuplicateError("Company already exists")
    if "account_manager_id" in updates:
        _check_manager(db, updates["account_manager_id"])
    for field, value in updates.items():
        if field == "name" and value is None:
            continue
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return company_to_dict(company)


def delete_company(db: Session, company_id: int) -> None:
    company = _get_company(db, company_id)
    bid_count = db.query(func.count(Bid.id)).filter(Bid.client_company_id == company.id).scalar()
    if bid_count:
        raise ConflictError(f"Cannot delete company with {bid_count} associated bids")
    stored_paths = [a.stored_path for a in company.attachments]
    company.tags = []
    db.delete(company)
    db.commit()
    for path in stored_paths:
        remove_stored_file(path)
    log.info(f"Company {company_id} deleted")


# ── Tags ─────────────────────────────────────────────────────────────


def add_company_tag(db: Session, company_id: int, name: str) -> list[dict]:
    """Attach a tag (created on demand). Adding an existing tag is a no-op."""
    company = _get_company(db, company_id)
    tag = get_or_create_tag(db, name)
    if tag not in company.tags:
        company.tags.append(tag)
    db.commit()
    return [tag_to_dict(t) for t in company.tags]


def remove_company_tag(db: Session, company_id: int, tag_id: int) -> list[dict]:
    company = _get_company(db, company_id)
    tag = db.get(Tag, tag_id)
    if tag is None or tag not in company.tags:
        raise NotFoundError("Tag not found on company")
    company.tags.remove(tag)
    db.commit()
    return [tag_to_dict(t) for t in company.tags]


# ── Attachments ──────────────────────────────────────────────────────


def add_company_attachment(
    db: Session, company_id: int, user, content: bytes, filename: str | None, content_type=None
) -> dict:
    company = _get_company(db, company_id)
    validate_upload(content, filename)
    path = store_upload(content, filename, f"companies/{company.id}")
    attachment = CompanyAttachment(
        company_id=company.id,
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
    return attachment_to_dict(attachment)


def delete_company_attachment(db: Session, company_id: int, attachment_id: int) -> None:
    attachment = db.get(CompanyAttachment, attachment_id)
    if attachment is None or attachment.company_id != company_id:
        raise NotFoundError("Attachment not found")
    path = attachment.stored_path
    db.delete(attachment)
    db.commit()
    remove_stored_file(path)
