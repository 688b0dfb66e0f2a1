"""
services/import_service.py — Bulk bid import from CSV/TSV/Excel

One spreadsheet row is one scope line. Rows sharing projectName and
clientCompany are grouped into a single bid with many scopes.

Business Rules:
- Headers match case-insensitively, with fallback names per field
- Rows missing projectName or clientCompany are skipped silently
- Companies (case-insensitive name) and contacts (name within company) are
  found or created; estimators are matched by email only, never created
- Dates are day-first (DD/MM/YYYY, DD-MM-YYYY) or ISO
- Each group is committed on its own; a failed group is reported in
  `errors` as {key, message} and the rest still import
- Imported bids are owned by the importing user

Called by: routers/imports.py
Depends on: file_utils.py, schemas/bids.py, services/bid_service.py
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import AppError
from ..file_utils import parse_tabular_file, pick
from ..models import Company, Contact, User
from ..schemas.bids import BID_STATUSES, BidCreate, ScopeIn
from ..utils.dates import parse_loose_date
from ..utils.file_validation import validate_import_file
from .access_policy import AccessPolicy
from .bid_service import create_bid

log = logging.getLogger("bidtracker.import")

# Header fallbacks, first match wins
PROJECT_HEADERS = ("projectName", "project")
COMPANY_HEADERS = ("clientCompany", "company")
CONTACT_HEADERS = ("contactName", "contact")
ESTIMATOR_HEADERS = ("estimatorEmail", "estimator")
PROPOSAL_HEADERS = ("proposalDate", "proposal")
DUE_HEADERS = ("dueDate", "due")
FOLLOW_UP_HEADERS = ("followUpOn", "followUp", "follow-up", "follow_up")
LOCATION_HEADERS = ("jobLocation", "location")
SOURCE_HEADERS = ("leadSource", "source")
STATUS_HEADERS = ("bidStatus", "status")
SCOPE_NAME_HEADERS = ("scopeName", "scope")
SCOPE_COST_HEADERS = ("scopeCost", "cost")
SCOPE_STATUS_HEADERS = ("scopeStatus",)


def _bid_status(raw: str) -> str:
    if not raw:
        return "Active"
    for status in BID_STATUSES:
        if raw.lower() == status.lower():
            return status
    raise ValueError(f"Unknown bid status: {raw}")


def group_rows(rows: list[dict]) -> dict[str, dict]:
    """Group scope lines into bids keyed by 'project||company'."""
    groups: dict[str, dict] = {}
    for row in rows:
        project = pick(row, PROJECT_HEADERS)
        company = pick(row, COMPANY_HEADERS)
        if not project or not company:
            continue
        key = f"{project}||{company}"
        if key not in groups:
            groups[key] = {
                "project_name": project,
                "client_company": company,
                "contact_name": pick(row, CONTACT_HEADERS) or None,
                "estimator_email": pick(row, ESTIMATOR_HEADERS) or None,
                "proposal_date": pick(row, PROPOSAL_HEADERS),
                "due_date": pick(row, DUE_HEADERS),
                "follow_up_on": pick(row, FOLLOW_UP_HEADERS),
                "job_location": pick(row, LOCATION_HEADERS) or None,
                "lead_source": pick(row, SOURCE_HEADERS) or None,
                "bid_status": pick(row, STATUS_HEADERS),
                "scopes": [],
            }
        groups[key]["scopes"].append(
            {
                "name": pick(row, SCOPE_NAME_HEADERS),
                "cost": pick(row, SCOPE_COST_HEADERS),
                "status": pick(row, SCOPE_STATUS_HEADERS),
            }
        )
    return groups


def _find_or_create_company(db: Session, name: str) -> Company:
    company = db.query(Company).filter(func.lower(Company.name) == name.lower()).first()
    if company is None:
        company = Company(name=name)
        db.add(company)
        db.commit()
        log.info(f"Import created company {name!r}")
    return company


def _find_or_create_contact(db: Session, company: Company, name: str) -> Contact:
    contact = (
        db.query(Contact)
        .filter(Contact.company_id == company.id, Contact.name == name)
        .first()
    )
    if contact is None:
        contact = Contact(company_id=company.id, name=name)
        db.add(contact)
        db.commit()
    return contact


def _error_message(exc: Exception) -> str:
    if isinstance(exc, AppError):
        return exc.message
    if isinstance(exc, PydanticValidationError):
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        return f"{loc}: {first['msg']}" if loc else first["msg"]
    return str(exc)


def _import_group(db: Session, user, policy: AccessPolicy, g: dict) -> int:
    company = _find_or_create_company(db, g["client_company"])
    contact = _find_or_create_contact(db, company, g["contact_name"]) if g["contact_name"] else None

    estimator = None
    if g["estimator_email"]:
        estimator = (
            db.query(User).filter(User.email == g["estimator_email"].strip().lower()).first()
        )

    data = BidCreate(
        project_name=g["project_name"],
        client_company_id=company.id,
        contact_id=contact.id if contact else None,
        estimator_id=estimator.id if estimator else None,
        proposal_date=parse_loose_date(g["proposal_date"]),
        due_date=parse_loose_date(g["due_date"]),
        follow_up_on=parse_loose_date(g["follow_up_on"]),
        job_location=g["job_location"],
        lead_source=g["lead_source"],
        bid_status=_bid_status(g["bid_status"]),
        scopes=[ScopeIn(**s) for s in g["scopes"]],
    )
    return create_bid(db, user, policy, data)["id"]


def import_bids(db: Session, user, policy: AccessPolicy, content: bytes, filename: str) -> dict:
    """Parse the upload and create one bid per project/company group."""
    validate_import_file(content, filename)
    rows = parse_tabular_file(content, filename)
    if rows:
        log.info(f"Import columns detected: {sorted(rows[0].keys())}")

    groups = group_rows(rows)
    imported: list[int] = []
    errors: list[dict] = []
    for key, g in groups.items():
        try:
            imported.append(_import_group(db, user, policy, g))
        except (AppError, SQLAlchemyError, ValueError) as e:
            db.rollback()
            errors.append({"key": key, "message": _error_message(e)})
            log.warning(f"Import group {key!r} failed: {_error_message(e)}")

    log.info(f"Import by {user.email}: {len(imported)} bids, {len(errors)} errors")
    return {"imported": len(imported), "errors": errors}
