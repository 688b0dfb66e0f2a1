"""
routers/users.py — User administration

Business Rules:
- Admin only, except GET /api/users/estimators (any signed-in user)
- Roles must belong to the active access policy
- Admins cannot change their own role, deactivate or delete themselves
- Password hashes are never returned

Called by: main.py (router mount)
Depends on: services/user_service.py
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import current_policy, require_admin, require_user
from ..models import User
from ..schemas.common import OkResponse
from ..schemas.users import PasswordChange, UserCreate, UserUpdate
from ..services import user_service
from ..services.access_policy import AccessPolicy

router = APIRouter(tags=["users"])


@router.get("/api/users")
async def list_users(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.get("/api/users/estimators")
async def list_estimators(
    user: User = Depends(require_user),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return user_service.list_estimators(db, policy)


@router.post("/api/users", status_code=201)
async def create_user(
    payload: UserCreate,
    user: User = Depends(require_admin),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return user_service.create_user(db, policy, payload, user)


@router.put("/api/users/{user_id}")
async def update_user(
    user_id: int,
    payload: UserUpdate,
    user: User = Depends(require_admin),
    policy: AccessPolicy = Depends(current_policy),
    db: Session = Depends(get_db),
):
    return user_service.update_user(db, policy, user_id, payload, user)


@router.patch("/api/users/{user_id}/password", response_model=OkResponse)
async def change_password(
    user_id: int,
    payload: PasswordChange,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user_service.set_password(db, user_id, payload.password)
    return {"ok": True}


@router.delete("/api/users/{user_id}", response_model=OkResponse)
async def delete_user(user_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id, user)
    return {"ok": True}
