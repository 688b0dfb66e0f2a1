"""Scope catalog — deduplicated scope names for autocomplete."""

from sqlalchemy import Column, Integer, String

from .base import Base


class ScopeCatalog(Base):
    __tablename__ = "scope_catalog"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
