"""routers/imports.py — Bulk bid import (CSV, TSV or Excel upload)."""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import current_policy, require_action
from ..models import User
from ..services.access_policy import AccessPolicy
from ..services.import_service import import_bids

router = APIRouter(tags=["import"])


@router.post("/api/import/bids")
async def import_bids_file(
    file: UploadFile = File(...),
    user: User = Depends(require_action("create")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    content = await file.read()
    return import_bids(db, user, policy, content, file.filename)
