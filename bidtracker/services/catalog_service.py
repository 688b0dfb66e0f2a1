"""Scope catalog — the autocomplete list of scope names."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import DuplicateError, NotFoundError
from ..models import ScopeCatalog


def list_catalog(db: Session) -> list[dict]:
    rows = db.query(ScopeCatalog).order_by(ScopeCatalog.name).all()
    return [{"id": r.id, "name": r.name} for r in rows]


def _ensure_unique(db: Session, name: str, exclude_id: int | None = None) -> None:
    q = db.query(ScopeCatalog).filter(func.lower(ScopeCatalog.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(ScopeCatalog.id != exclude_id)
    if q.first():
        raise DuplicateError(f"Scope {name!r} already exists")


def create_entry(db: Session, name: str) -> dict:
    _ensure_unique(db, name)
    row = ScopeCatalog(name=name)
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"id": row.id, "name": row.name}


def update_entry(db: Session, entry_id: int, name: str) -> dict:
    row = db.get(ScopeCatalog, entry_id)
    if row is None:
        raise NotFoundError(f"Scope with ID {entry_id} not found")
    _ensure_unique(db, name, exclude_id=row.id)
    row.name = name
    db.commit()
    return {"id": row.id, "name": row.name}


def delete_entry(db: Session, entry_id: int) -> None:
    row = db.get(ScopeCatalog, entry_id)
    if row is None:
        raise NotFoundError(f"Scope with ID {entry_id} not found")
    db.delete(row)
    db.commit()
