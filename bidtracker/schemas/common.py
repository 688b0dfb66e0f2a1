"""Shared base models and small field cleaners."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OkResponse(BaseModel):
    ok: bool = True


def blank_to_none(v):
    """Strip strings; empty strings become None."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def falsy_id_to_none(v):
    """Treat "", 0 and None as "not set" for optional foreign keys."""
    if v in ("", 0, None):
        return None
    return v
