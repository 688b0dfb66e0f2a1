"""Tag lookup shared by bids and companies."""

from sqlalchemy.orm import Session

from ..models import Tag


def get_or_create_tag(db: Session, name: str) -> Tag:
    """Return the tag named `name`, staging a new one if needed (no commit)."""
    name = name.strip()
    tag = db.query(Tag).filter(Tag.name == name).first()
    if tag is None:
        tag = Tag(name=name)
        db.add(tag)
        db.flush()
    return tag


def resolve_tags(db: Session, names: list[str]) -> list[Tag]:
    return [get_or_create_tag(db, n) for n in names if n and n.strip()]


def tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name}
