"""Scope catalog request model."""

from pydantic import field_validator

from .common import CamelModel


class ScopeCatalogIn(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Scope name is required")
        return v
