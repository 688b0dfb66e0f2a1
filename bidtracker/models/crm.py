"""CRM models — Companies, Contacts, Tags, company attachments and activity."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from .base import Base

company_tags = Table(
    "company_tags",
    Base.metadata,
    Column("company_id", Integer, ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """Free-form label shared by bids and companies."""

    __tablename__ = "tags"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)


class Company(Base):
    """Client organization — the customer a bid is written for."""

    __tablename__ = "companies"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    website = Column(String(500))
    phone = Column(String(100))
    address = Column(String(500))
    notes = Column(Text)
    account_manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    account_manager = relationship("User", foreign_keys=[account_manager_id])
    contacts = relationship(
        "Contact",
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="Contact.name",
    )
    bids = relationship("Bid", back_populates="client_company", order_by="Bid.id")
    tags = relationship("Tag", secondary=company_tags, order_by="Tag.name")
    attachments = relationship(
        "CompanyAttachment", back_populates="company", cascade="all, delete-orphan"
    )
    activities = relationship(
        "ActivityLog",
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="ActivityLog.created_at.desc()",
    )

    __table_args__ = (Index("ix_companies_name", "name"),)


class Contact(Base):
    """Person at a client company."""

    __tablename__ = "contacts"
    id = Column(Integer, primary_key=True)
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(100))
    title = Column(String(255))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", back_populates="contacts")

    __table_args__ = (
        Index("ix_contacts_company", "company_id"),
        Index("ix_contacts_name", "name"),
    )


class CompanyAttachment(Base):
    """File uploaded against a company (stored under settings.upload_dir)."""

    __tablename__ = "company_attachments"
    id = Column(Integer, primary_key=True)
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    original_name = Column(String(500), nullable=False)
    stored_path = Column(String(1000), nullable=False)
    content_type = Column(String(100))
    size_bytes = Column(Integer)
    uploaded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    company = relationship("Company", back_populates="attachments")
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id])

    __table_args__ = (Index("ix_company_attachments_company", "company_id"),)


class ActivityLog(Base):
    """Activity log — manual entries (call, note) and bid lifecycle events."""

    __tablename__ = "activity_log"
    id = Column(Integer, primary_key=True)
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    activity_type = Column(String(20), nullable=False)
    summary = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    company = relationship("Company", back_populates="activities")
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (Index("ix_activity_company", "company_id", "created_at"),)
