"""
services/access_policy.py — Role/ownership gate for bid operations

Two checks compose:
  1. Coarse: the caller's role must allow the action (read/create/update/delete).
     Runs before any data access (see dependencies.require_action).
  2. Fine: for operations on one bid, owner-scoped roles must own the bid
     (or, when the policy allows it, the bid must have no owner). Privileged
     roles skip this; any other role may only read.

The active policy is chosen by settings.access_policy so call sites never
change when the role scheme does.

Business Rules:
- standard: ADMIN, MANAGER privileged; USER owner-scoped, full CRUD on own bids
- legacy:   ADMIN, MANAGER privileged; ESTIMATOR owner-scoped; VIEWER read-only
- Denials always raise ForbiddenError("Forbidden"), whatever the reason

Called by: dependencies.py, services/bid_service.py, services/dashboard_service.py
Depends on: config, errors
"""

from dataclasses import dataclass, replace

from ..config import settings
from ..errors import ForbiddenError

ACTIONS = ("read", "create", "update", "delete")
_ALL = frozenset(ACTIONS)


@dataclass(frozen=True)
class AccessPolicy:
    name: str
    permissions: dict
    privileged: frozenset
    owner_scoped: frozenset
    allow_unowned: bool = True

    @property
    def roles(self) -> tuple[str, ...]:
        return tuple(self.permissions)

    def allows(self, role: str | None, action: str) -> bool:
        return action in self.permissions.get(role, ())

    def is_privileged(self, role: str | None) -> bool:
        return role in self.privileged

    def is_owner_scoped(self, role: str | None) -> bool:
        return role in self.owner_scoped

    def owns(self, user_id: int, owner_id: int | None) -> bool:
        """Ownership predicate for owner-scoped roles."""
        if owner_id is None:
            return self.allow_unowned
        return owner_id == user_id

    def can_access(self, role: str | None, user_id: int, action: str, owner_id: int | None) -> bool:
        if not self.allows(role, action):
            return False
        if self.is_privileged(role):
            return True
        if self.is_owner_scoped(role):
            return self.owns(user_id, owner_id)
        return action == "read"


STANDARD_POLICY = AccessPolicy(
    name="standard",
    permissions={"ADMIN": _ALL, "MANAGER": _ALL, "USER": _ALL},
    privileged=frozenset({"ADMIN", "MANAGER"}),
    owner_scoped=frozenset({"USER"}),
)

LEGACY_POLICY = AccessPolicy(
    name="legacy",
    permissions={
        "ADMIN": _ALL,
        "MANAGER": _ALL,
        "ESTIMATOR": _ALL,
        "VIEWER": frozenset({"read"}),
    },
    privileged=frozenset({"ADMIN", "MANAGER"}),
    owner_scoped=frozenset({"ESTIMATOR"}),
)

POLICIES = {p.name: p for p in (STANDARD_POLICY, LEGACY_POLICY)}


def get_policy() -> AccessPolicy:
    """Active policy from settings, with the configured unowned-bid rule."""
    base = POLICIES.get(settings.access_policy)
    if base is None:
        raise ValueError(f"Unknown access policy: {settings.access_policy!r}")
    if base.allow_unowned == settings.allow_unowned_bids:
        return base
    return replace(base, allow_unowned=settings.allow_unowned_bids)


def authorize_action(policy: AccessPolicy, user, action: str) -> None:
    """Coarse role/action check. Raises ForbiddenError."""
    if not policy.allows(user.role, action):
        raise ForbiddenError()


def authorize_record(policy: AccessPolicy, user, action: str, owner_id: int | None) -> None:
    """Row-level check for one bid. Raises ForbiddenError."""
    if not policy.can_access(user.role, user.id, action, owner_id):
        raise ForbiddenError()
