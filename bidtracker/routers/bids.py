"""
routers/bids.py — Bid CRUD, notes and attachments

Business Rules:
- Every route first runs the coarse role check (require_action)
- Per-bid routes then go through the ownership gate in bid_service
- Non-numeric ids and invalid bodies → 400; missing bid → 404; gate → 403
- createdFrom/createdTo accept YYYY-MM-DD, MM/DD/YYYY or DD/MM/YYYY

Called by: main.py (router mount)
Depends on: dependencies, schemas/bids.py, services/bid_service.py
"""

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import current_policy, require_action
from ..errors import ValidationError
from ..models import User
from ..schemas.bids import BidCreate, BidSummaryOut, BidUpdate, NoteCreate
from ..services import bid_service
from ..services.access_policy import AccessPolicy
from ..utils.dates import parse_query_date

router = APIRouter(tags=["bids"])


def _date_param(raw: str | None, name: str):
    if not raw:
        return None
    parsed = parse_query_date(raw)
    if parsed is None:
        raise ValidationError(f"Invalid {name} date: {raw}")
    return parsed


@router.get("/api/bids", response_model=list[BidSummaryOut])
async def list_bids(
    status: str | None = None,
    search: str | None = None,
    created_from: str | None = Query(None, alias="createdFrom"),
    created_to: str | None = Query(None, alias="createdTo"),
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return bid_service.list_bids(
        db,
        user,
        policy,
        status=status or None,
        search=search,
        created_from=_date_param(created_from, "createdFrom"),
        created_to=_date_param(created_to, "createdTo"),
    )


@router.get("/api/bids/{bid_id}")
async def get_bid(
    bid_id: int,
    user: User = Depends(require_action("read")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return bid_service.get_bid(db, user, policy, bid_id)


@router.post("/api/bids", status_code=201)
async def create_bid(
    payload: BidCreate,
    user: User = Depends(require_action("create")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return bid_service.create_bid(db, user, policy, payload)


@router.put("/api/bids/{bid_id}")
async def update_bid(
    bid_id: int,
    payload: BidUpdate,
    user: User = Depends(require_action("update")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return bid_service.update_bid(db, user, policy, bid_id, payload)


@router.delete("/api/bids/{bid_id}", status_code=204)
async def delete_bid(
    bid_id: int,
    user: User = Depends(require_action("delete")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    bid_service.delete_bid(db, user, policy, bid_id)
    return Response(status_code=204)


@router.post("/api/bids/{bid_id}/notes", status_code=201)
async def add_note(
    bid_id: int,
    payload: NoteCreate,
    user: User = Depends(require_action("update")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return bid_service.add_note(db, user, policy, bid_id, payload.body)


@router.post("/api/bids/{bid_id}/attachments", status_code=201)
async def upload_attachment(
    bid_id: int,
    file: UploadFile = File(...),
    user: User = Depends(require_action("update")),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    content = await file.read()
    return bid_service.add_attachment(
        db, user, policy, bid_id, content, file.filename, file.content_type
    )
