"""routers/scopes.py — Scope catalog (autocomplete names).

Anyone signed in may list; create/update/delete need a privileged role.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_privileged, require_user
from ..models import User
from ..schemas.catalog import ScopeCatalogIn
from ..schemas.common import OkResponse
from ..services import catalog_service

router = APIRouter(tags=["scopes"])


@router.get("/api/scopes")
async def list_scopes(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return catalog_service.list_catalog(db)


@router.post("/api/scopes", status_code=201)
async def create_scope(
    payload: ScopeCatalogIn,
    user: User = Depends(require_privileged),
    db: Session = Depends(get_db),
):
    return catalog_service.create_entry(db, payload.name)


@router.put("/api/scopes/{entry_id}")
async def update_scope(
    entry_id: int,
    payload: ScopeCatalogIn,
    user: User = Depends(require_privileged),
    db: Session = Depends(get_db),
):
    return catalog_service.update_entry(db, entry_id, payload.name)


@router.delete("/api/scopes/{entry_id}", response_model=OkResponse)
async def delete_scope(
    entry_id: int, user: User = Depends(require_privileged), db: Session = Depends(get_db)
):
    catalog_service.delete_entry(db, entry_id)
    return {"ok": True}
