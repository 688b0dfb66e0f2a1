"""
schemas/bids.py — Pydantic models for Bid, Scope and Note endpoints

Validates request bodies and documents response shapes for OpenAPI.

Business Rules:
- projectName is required and trimmed; clientCompanyId is required
- Scope names are trimmed; scopes whose name is empty are dropped silently
- Scope cost is coerced to a non-negative number (missing/invalid/negative → 0)
- Scope status is matched case-insensitively to Pending/Won/Lost, else Pending
- bidStatus is one of Active, Complete, Completed, Archived, Hot, Cold
- Empty date strings become null
- Text fields are capped at their column widths (255; jobLocation 500)
- A null or non-list scopes value is treated as no scopes

Called by: routers/bids.py, services/import_service.py
Depends on: pydantic, services/aggregate.py, utils
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field, field_validator

from ..services.aggregate import SCOPE_STATUSES
from ..utils import to_cost
from .common import CamelModel, blank_to_none, falsy_id_to_none

BID_STATUSES = ("Active", "Complete", "Completed", "Archived", "Hot", "Cold")
BidStatus = Literal["Active", "Complete", "Completed", "Archived", "Hot", "Cold"]


def coerce_scope_status(value) -> str:
    """'won' → 'Won'; anything unrecognised → 'Pending'."""
    s = str(value or "").strip().lower()
    for status in SCOPE_STATUSES:
        if s == status.lower():
            return status
    return "Pending"


# ── Scopes ───────────────────────────────────────────────────────────


class ScopeIn(CamelModel):
    name: str = Field("", max_length=255)
    cost: float = 0
    status: str = "Pending"

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v) -> str:
        return str(v or "").strip()

    @field_validator("cost", mode="before")
    @classmethod
    def clean_cost(cls, v) -> float:
        return to_cost(v)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v) -> str:
        return coerce_scope_status(v)


# ── Bids ─────────────────────────────────────────────────────────────


class BidCreate(CamelModel):
    project_name: str = Field(max_length=255)
    client_company_id: int
    contact_id: int | None = None
    estimator_id: int | None = None
    owner_id: int | None = None
    proposal_date: date | None = None
    due_date: date | None = None
    follow_up_on: date | None = None
    job_location: str | None = Field(None, max_length=500)
    lead_source: str | None = Field(None, max_length=255)
    bid_status: BidStatus = "Active"
    scopes: list[ScopeIn] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("project_name")
    @classmethod
    def project_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("projectName must not be blank")
        return v

    @field_validator("contact_id", "estimator_id", "owner_id", mode="before")
    @classmethod
    def unset_ids(cls, v):
        return falsy_id_to_none(v)

    @field_validator("proposal_date", "due_date", "follow_up_on", mode="before")
    @classmethod
    def empty_date(cls, v):
        v = blank_to_none(v)
        # Clients sometimes send full ISO timestamps for date pickers
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @field_validator("job_location", "lead_source", mode="before")
    @classmethod
    def empty_text(cls, v):
        return blank_to_none(v)

    @field_validator("bid_status", mode="before")
    @classmethod
    def default_status(cls, v):
        return blank_to_none(v) or "Active"

    @field_validator("scopes", mode="before")
    @classmethod
    def scopes_list(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("scopes")
    @classmethod
    def drop_unnamed_scopes(cls, v: list[ScopeIn]) -> list[ScopeIn]:
        return [s for s in v if s.name]

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for t in v:
            t = t.strip()
            if t:
                seen.setdefault(t, None)
        return list(seen)


class BidUpdate(BidCreate):
    """PUT body: a full replacement, including the whole scope set."""


class NoteCreate(CamelModel):
    body: str

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note body must not be blank")
        return v


# ── Responses ────────────────────────────────────────────────────────


class UserRef(CamelModel):
    id: int
    name: str | None = None
    email: str | None = None


class BidSummaryOut(CamelModel, extra="allow"):
    id: int
    project_name: str
    client_name: str
    amount: float
    proposal_date: date | None = None
    due_date: date | None = None
    follow_up_on: date | None = None
    scope_status: str
    bid_status: str
    estimator: UserRef | None = None
    last_modified_by: UserRef | None = None
    last_modified_at: datetime | None = None
