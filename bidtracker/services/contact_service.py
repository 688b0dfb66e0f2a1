"""Contact service — people at client companies."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..errors import ConflictError, NotFoundError
from ..models import Bid, Company, Contact

log = logging.getLogger("bidtracker.contacts")


def contact_to_dict(c: Contact) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "phone": c.phone,
        "title": c.title,
        "company": {"id": c.company.id, "name": c.company.name} if c.company else None,
    }


def list_contacts(db: Session, company_id: int | None = None) -> list[dict]:
    q = db.query(Contact).options(joinedload(Contact.company))
    if company_id is not None:
        q = q.filter(Contact.company_id == company_id)
    return [contact_to_dict(c) for c in q.order_by(Contact.name).all()]


def _require_company(db: Session, company_id: int) -> None:
    if not db.get(Company, company_id):
        raise NotFoundError("Company not found")


def _get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.get(Contact, contact_id)
    if contact is None:
        raise NotFoundError("Contact not found")
    return contact


def create_contact(db: Session, data) -> dict:
    _require_company(db, data.company_id)
    contact = Contact(**data.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact_to_dict(contact)


def update_contact(db: Session, contact_id: int, data) -> dict:
    contact = _get_contact(db, contact_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("company_id") is not None:
        _require_company(db, updates["company_id"])
    for field, value in updates.items():
        if field in ("name", "company_id") and value is None:
            continue
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact_to_dict(contact)


def delete_contact(db: Session, contact_id: int) -> None:
    contact = _get_contact(db, contact_id)
    bid_count = db.query(func.count(Bid.id)).filter(Bid.contact_id == contact.id).scalar()
    if bid_count:
        raise ConflictError(f"Cannot delete contact with {bid_count} associated bids")
    db.delete(contact)
    db.commit()
    log.info(f"Contact {contact_id} deleted")
