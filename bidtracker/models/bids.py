"""Bid models — Bids, their cost Scopes, Notes, Attachments and tag links."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base

bid_tags = Table(
    "bid_tags",
    Base.metadata,
    Column("bid_id", Integer, ForeignKey("bids.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Bid(Base):
    """A prospective project/proposal for a client company."""

    __tablename__ = "bids"
    id = Column(Integer, primary_key=True)
    project_name = Column(String(255), nullable=False)
    client_company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    estimator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    proposal_date = Column(Date)
    due_date = Column(Date)
    follow_up_on = Column(Date)
    job_location = Column(String(500))
    lead_source = Column(String(255))
    bid_status = Column(String(20), nullable=False, default="Active")

    last_modified_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    last_modified_at = Column(DateTime)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    client_company = relationship("Company", back_populates="bids")
    contact = relationship("Contact", foreign_keys=[contact_id])
    estimator = relationship("User", foreign_keys=[estimator_id])
    owner = relationship("User", foreign_keys=[owner_id])
    last_modified_by = relationship("User", foreign_keys=[last_modified_by_id])

    scopes = relationship(
        "Scope", back_populates="bid", cascade="all, delete-orphan", order_by="Scope.id"
    )
    notes = relationship(
        "Note", back_populates="bid", cascade="all, delete-orphan", order_by="Note.created_at"
    )
    attachments = relationship(
        "BidAttachment", back_populates="bid", cascade="all, delete-orphan"
    )
    tags = relationship("Tag", secondary=bid_tags, order_by="Tag.name")

    __table_args__ = (
        Index("ix_bids_company", "client_company_id"),
        Index("ix_bids_owner", "owner_id"),
        Index("ix_bids_status", "bid_status"),
        Index("ix_bids_updated", "updated_at"),
        Index("ix_bids_follow_up", "follow_up_on"),
    )


class Scope(Base):
    """One cost line item within a bid. Never outlives its bid."""

    __tablename__ = "scopes"
    id = Column(Integer, primary_key=True)
    bid_id = Column(Integer, ForeignKey("bids.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    cost = Column(Float, nullable=False, default=0)
    status = Column(String(10), nullable=False, default="Pending")  # Pending | Won | Lost

    bid = relationship("Bid", back_populates="scopes")

    __table_args__ = (Index("ix_scopes_bid", "bid_id"),)


class Note(Base):
    __tablename__ = "notes"
    id = Column(Integer, primary_key=True)
    bid_id = Column(Integer, ForeignKey("bids.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    bid = relationship("Bid", back_populates="notes")
    author = relationship("User", foreign_keys=[author_id])

    __table_args__ = (Index("ix_notes_bid", "bid_id"),)


class BidAttachment(Base):
    """File uploaded against a bid (stored under settings.upload_dir)."""

    __tablename__ = "bid_attachments"
    id = Column(Integer, primary_key=True)
    bid_id = Column(Integer, ForeignKey("bids.id", ondelete="CASCADE"), nullable=False)
    original_name = Column(String(500), nullable=False)
    stored_path = Column(String(1000), nullable=False)
    content_type = Column(String(100))
    size_bytes = Column(Integer)
    uploaded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    bid = relationship("Bid", back_populates="attachments")
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id])

    __table_args__ = (Index("ix_bid_attachments_bid", "bid_id"),)
