"""Database models — re-exports all models.

Import from here:  from bidtracker.models import User, Bid, ...
Or from submodules: from bidtracker.models.bids import Scope
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import User  # noqa: F401

# CRM: Companies, Contacts, Tags, Activity
from .crm import (  # noqa: F401
    ActivityLog,
    Company,
    CompanyAttachment,
    Contact,
    Tag,
    company_tags,
)

# Bids & Scopes
from .bids import Bid, BidAttachment, Note, Scope, bid_tags  # noqa: F401

# Scope Catalog
from .catalog import ScopeCatalog  # noqa: F401
