"""
schemas/crm.py — Pydantic models for company, contact, tag and activity endpoints

Business Rules:
- Company name is required and non-empty (uniqueness is checked in the service)
- Contact name is required; companyId must reference an existing company
- activityType must be one of: note, call, email, meeting

Called by: routers/companies.py, routers/contacts.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator

from .common import CamelModel, blank_to_none, falsy_id_to_none


def _required(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


# ── Companies ────────────────────────────────────────────────────────


class CompanyCreate(CamelModel):
    name: str
    website: str | None = None
    phone: str | None = None
    address: str | None = None
    notes: str | None = None
    account_manager_id: int | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _required(v, "Company name")

    @field_validator("website", "phone", "address", "notes", mode="before")
    @classmethod
    def empty_text(cls, v):
        return blank_to_none(v)

    @field_validator("account_manager_id", mode="before")
    @classmethod
    def unset_manager(cls, v):
        return falsy_id_to_none(v)


class CompanyUpdate(CamelModel):
    name: str | None = None
    website: str | None = None
    phone: str | None = None
    address: str | None = None
    notes: str | None = None
    account_manager_id: int | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required(v, "Company name")


class CompanyOut(CamelModel):
    id: int
    name: str


# ── Contacts ─────────────────────────────────────────────────────────


class ContactCreate(CamelModel):
    company_id: int
    name: str
    email: str | None = None
    phone: str | None = None
    title: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _required(v, "Contact name")

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, v):
        v = blank_to_none(v)
        return v.lower() if isinstance(v, str) else v

    @field_validator("phone", "title", mode="before")
    @classmethod
    def empty_text(cls, v):
        return blank_to_none(v)


class ContactUpdate(CamelModel):
    company_id: int | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    title: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required(v, "Contact name")

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


# ── Tags & Activity ──────────────────────────────────────────────────


class TagCreate(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _required(v, "Tag name")


class ActivityCreate(CamelModel):
    activity_type: Literal["note", "call", "email", "meeting"] = "note"
    summary: str

    @field_validator("summary")
    @classmethod
    def summary_not_blank(cls, v: str) -> str:
        return _required(v, "Summary")
