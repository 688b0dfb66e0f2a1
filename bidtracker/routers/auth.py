"""
routers/auth.py — Login and current-user endpoints

Business Rules:
- POST /api/auth/login returns {ok, token, user} and also sets an httpOnly
  `token` cookie; wrong credentials or an inactive account → 401
- Login is rate limited per client address (RATE_LIMIT_LOGIN)

Called by: main.py (router mount)
Depends on: services/user_service.py, rate_limit.py
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..rate_limit import limiter
from ..schemas.users import LoginRequest
from ..services.user_service import authenticate, user_to_dict

router = APIRouter(tags=["auth"])


@router.post("/api/auth/login")
@limiter.limit(settings.rate_limit_login)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
):
    result = authenticate(db, payload.email, payload.password)
    if result is None:
        raise HTTPException(401, "Invalid email or password")
    response.set_cookie(
        "token",
        result["token"],
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.access_token_expire_days * 24 * 60 * 60,
    )
    return {"ok": True, **result}


@router.post("/api/auth/logout")
async def logout(response: Response):
    response.delete_cookie("token")
    return {"ok": True}


@router.get("/api/auth/me")
async def me(user: User = Depends(require_user)):
    return user_to_dict(user)
