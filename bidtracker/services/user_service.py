"""User service — login and user administration.

Password hashes never leave this module: every response goes through
user_to_dict.
"""

import logging

from sqlalchemy.orm import Session

from ..errors import DuplicateError, NotFoundError, ValidationError
from ..models import User
from ..utils.security import create_access_token, hash_password, verify_password
from .access_policy import AccessPolicy

log = logging.getLogger(__name__)


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role,
        "isActive": bool(u.is_active),
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }


def authenticate(db: Session, email: str, password: str) -> dict | None:
    """Return {token, user} for valid, active credentials; None otherwise."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        log.info(f"Failed login for {email}")
        return None
    token = create_access_token(user.id, user.role)
    return {
        "token": token,
        "user": {"id": user.id, "role": user.role, "name": user.name, "email": user.email},
    }


# ── User Management ──────────────────────────────────────────────────


def list_users(db: Session) -> list[dict]:
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [user_to_dict(u) for u in users]


def list_estimators(db: Session, policy: AccessPolicy) -> list[dict]:
    """Users who can be assigned as estimator: every non-admin role that may create bids."""
    roles = [r for r in policy.roles if r != "ADMIN" and policy.allows(r, "create")]
    users = (
        db.query(User)
        .filter(User.role.in_(roles), User.is_active.is_(True))
        .order_by(User.name)
        .all()
    )
    return [{"id": u.id, "name": u.name, "email": u.email, "role": u.role} for u in users]


def _check_role(policy: AccessPolicy, role: str) -> None:
    if role not in policy.roles:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(policy.roles)}")


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    q = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def create_user(db: Session, policy: AccessPolicy, data, admin_user) -> dict:
    _check_role(policy, data.role)
    if _email_taken(db, data.email):
        raise DuplicateError("Email already exists")
    user = User(
        email=data.email,
        name=data.name,
        role=data.role,
        password_hash=hash_password(data.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info(f"Admin {admin_user.email} created user {user.email} ({user.role})")
    return user_to_dict(user)


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(db: Session, policy: AccessPolicy, user_id: int, data, admin_user) -> dict:
    """Update profile, role or active flag. Guards against self-lockout."""
    target = _get_user(db, user_id)

    if data.is_active is not None:
        if target.id == admin_user.id and not data.is_active:
            raise ValidationError("Cannot deactivate yourself")
        target.is_active = data.is_active

    if data.role is not None and data.role != target.role:
        if target.id == admin_user.id:
            raise ValidationError("Cannot change your own role")
        _check_role(policy, data.role)
        log.info(f"Admin {admin_user.email} changed {target.email} role: {target.role} -> {data.role}")
        target.role = data.role

    if data.email is not None and data.email != target.email:
        if _email_taken(db, data.email, exclude_id=target.id):
            raise DuplicateError("Email already exists")
        target.email = data.email

    if data.name is not None:
        target.name = data.name.strip()

    db.commit()
    db.refresh(target)
    return user_to_dict(target)


def set_password(db: Session, user_id: int, password: str) -> None:
    target = _get_user(db, user_id)
    target.password_hash = hash_password(password)
    db.commit()


def delete_user(db: Session, user_id: int, admin_user) -> None:
    if user_id == admin_user.id:
        raise ValidationError("You can't delete your own account")
    target = _get_user(db, user_id)
    db.delete(target)
    db.commit()
    log.info(f"Admin {admin_user.email} deleted user {target.email}")
