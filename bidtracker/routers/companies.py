"""
routers/companies.py — Client companies, their tags, attachments and activity

Business Rules:
- Any signed-in user may read and edit companies
- Duplicate names (case-insensitive) → 409; deleting a company with bids → 400

Called by: main.py (router mount)
Depends on: services/company_service.py, services/activity_service.py
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..schemas.common import OkResponse
from ..schemas.crm import ActivityCreate, CompanyCreate, CompanyUpdate, TagCreate
from ..services import activity_service, company_service

router = APIRouter(tags=["companies"])


@router.get("/api/companies")
async def list_companies(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return company_service.list_companies(db)


@router.post("/api/companies", status_code=201)
async def create_company(
    payload: CompanyCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return company_service.create_company(db, payload, user)


@router.get("/api/companies/{company_id}")
async def get_company(
    company_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    return company_service.get_company(db, company_id)


@router.put("/api/companies/{company_id}")
async def update_company(
    company_id: int,
    payload: CompanyUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return company_service.update_company(db, company_id, payload)


@router.delete("/api/companies/{company_id}", response_model=OkResponse)
async def delete_company(
    company_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    company_service.delete_company(db, company_id)
    return {"ok": True}


# ── Tags ─────────────────────────────────────────────────────────────


@router.post("/api/companies/{company_id}/tags")
async def add_tag(
    company_id: int,
    payload: TagCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return company_service.add_company_tag(db, company_id, payload.name)


@router.delete("/api/companies/{company_id}/tags/{tag_id}")
async def remove_tag(
    company_id: int, tag_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    return company_service.remove_company_tag(db, company_id, tag_id)


# ── Attachments ──────────────────────────────────────────────────────


@router.post("/api/companies/{company_id}/attachments", status_code=201)
async def upload_attachment(
    company_id: int,
    file: UploadFile = File(...),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    content = await file.read()
    return company_service.add_company_attachment(
        db, company_id, user, content, file.filename, file.content_type
    )


@router.delete("/api/companies/{company_id}/attachments/{attachment_id}", response_model=OkResponse)
async def delete_attachment(
    company_id: int,
    attachment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    company_service.delete_company_attachment(db, company_id, attachment_id)
    return {"ok": True}


# ── Activity ─────────────────────────────────────────────────────────


@router.get("/api/companies/{company_id}/activity")
async def list_activity(
    company_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)
):
    return activity_service.list_activity(db, company_id)


@router.post("/api/companies/{company_id}/activity", status_code=201)
async def add_activity(
    company_id: int,
    payload: ActivityCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return activity_service.add_manual_activity(
        db, company_id, user, payload.activity_type, payload.summary
    )
