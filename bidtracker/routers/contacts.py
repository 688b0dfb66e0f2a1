"""routers/contacts.py — Contacts at client companies."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..schemas.common import OkResponse
from ..schemas.crm import ContactCreate, ContactUpdate
from ..services import contact_service

router = APIRouter(tags=["contacts"])


@router.get("/api/contacts")
async def list_contacts(
    company_id: int | None = Query(None, alias="companyId"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return contact_service.list_contacts(db, company_id)


@router.post("/api/contacts", status_code=201)
async def create_contact(
    payload: ContactCreate, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    return contact_service.create_contact(db, payload)


@router.put("/api/contacts/{contact_id}")
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return contact_service.update_contact(db, contact_id, payload)


@router.delete("/api/contacts/{contact_id}", response_model=OkResponse)
async def delete_contact(
    contact_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    contact_service.delete_contact(db, contact_id)
    return {"ok": True}
