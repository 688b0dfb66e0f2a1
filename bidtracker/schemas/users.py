"""
schemas/users.py — Login and user administration bodies

Business Rules:
- Emails are trimmed and lowercased
- Passwords must be at least 8 characters
- Role membership is checked against the active access policy in the service,
  not here, so the same schema serves both role schemes

Called by: routers/auth.py, routers/users.py
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .common import CamelModel

MIN_PASSWORD_LENGTH = 8


def _clean_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("A valid email is required")
    return v


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserCreate(CamelModel):
    email: str
    name: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    role: str = "USER"

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("role")
    @classmethod
    def upper_role(cls, v: str) -> str:
        return v.strip().upper()


class UserUpdate(CamelModel):
    email: str | None = None
    name: str | None = None
    role: str | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str | None) -> str | None:
        return _clean_email(v) if v is not None else v

    @field_validator("role")
    @classmethod
    def upper_role(cls, v: str | None) -> str | None:
        return v.strip().upper() if v is not None else v


class PasswordChange(CamelModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class UserOut(CamelModel):
    id: int
    email: str
    name: str | None = None
    role: str
    is_active: bool = True
