"""
dependencies.py — Shared FastAPI Dependencies

Reusable dependency functions for authentication and authorization. All
routers import from here instead of defining their own auth logic.

Business Rules:
- get_current_user reads a Bearer JWT (or the `token` cookie set at login);
  raises 401 when missing/invalid/unknown user, 403 if deactivated
- require_action(action) is the coarse role check of the active access
  policy and runs before any data access
- require_privileged allows the policy's privileged roles (ADMIN, MANAGER)
- require_admin raises 403 unless role == "ADMIN"

Called by: all routers
Depends on: database, models, services/access_policy.py, utils/security.py
"""

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .errors import ForbiddenError
from .models import User
from .services.access_policy import AccessPolicy, authorize_action, get_policy
from .utils import safe_int
from .utils.security import decode_access_token

log = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ── Authentication ────────────────────────────────────────────────────


def _token_from_request(request: Request, credentials: HTTPAuthorizationCredentials | None):
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return request.cookies.get("token")


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    token = _token_from_request(request, credentials)
    if not token:
        raise HTTPException(401, "Not authenticated")
    payload = decode_access_token(token)
    uid = safe_int(payload.get("sub")) if payload else None
    if uid is None:
        raise HTTPException(401, "Invalid or expired token")
    user = db.get(User, uid)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not user.is_active:
        raise HTTPException(403, "Account deactivated — contact admin")
    return user


def require_user(user: User = Depends(get_current_user)) -> User:
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency: raises 403 if user is not an admin."""
    if user.role != "ADMIN":
        raise HTTPException(403, "Admin access required")
    return user


# ── Authorization ─────────────────────────────────────────────────────


def current_policy() -> AccessPolicy:
    return get_policy()


def require_privileged(
    user: User = Depends(get_current_user), policy: AccessPolicy = Depends(current_policy)
) -> User:
    if not policy.is_privileged(user.role):
        raise ForbiddenError()
    return user


def require_action(action: str):
    """Build a dependency that checks the caller's role allows `action`."""

    def _check(
        user: User = Depends(get_current_user), policy: AccessPolicy = Depends(current_policy)
    ) -> User:
        authorize_action(policy, user, action)
        return user

    _check.__name__ = f"require_{action}"
    return _check
