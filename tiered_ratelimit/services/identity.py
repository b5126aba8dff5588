"""Caller identity classification.

Gates never probe principal objects for attributes. A principal exposes a
small capability protocol, and the classifier composes those checks into a
single role tag used for policy lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

Role = Literal["admin", "premium", "authenticated"]

ADMIN_ROLE_NAMES = frozenset({"admin", "administrator"})
PREMIUM_ROLE_NAMES = frozenset({"premium", "pro", "paid"})


@runtime_checkable
class Principal(Protocol):
    """Resolved identity of the caller."""

    @property
    def identifier(self) -> str: ...

    def role(self) -> str | None: ...

    def is_admin_flag(self) -> bool: ...

    def is_premium_flag(self) -> bool: ...

    def has_role(self, name: str) -> bool: ...


@dataclass(frozen=True)
class UserPrincipal:
    """Plain principal built from the identity lookup.

    Attributes:
        user_id: Unique identifier of the caller.
        role_name: Primary role field, if any.
        is_admin: Explicit admin flag.
        is_premium: Explicit premium flag.
        roles: Additional role names granted to the caller.
    """

    user_id: str
    role_name: str | None = None
    is_admin: bool = False
    is_premium: bool = False
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def identifier(self) -> str:
        return self.user_id

    def role(self) -> str | None:
        return self.role_name

    def is_admin_flag(self) -> bool:
        return self.is_admin

    def is_premium_flag(self) -> bool:
        return self.is_premium

    def has_role(self, name: str) -> bool:
        return name in self.roles


def _role_matches(principal: Principal, names: frozenset[str]) -> bool:
    role = principal.role()
    return role is not None and role.lower() in names


def is_admin(principal: Principal | None) -> bool:
    """Return True if the principal carries admin rights by any signal."""

    if principal is None:
        return False
    return (
        _role_matches(principal, ADMIN_ROLE_NAMES)
        or principal.is_admin_flag()
        or principal.has_role("admin")
    )


def is_premium(principal: Principal | None) -> bool:
    """Return True if the principal carries premium rights by any signal."""

    if principal is None:
        return False
    return (
        _role_matches(principal, PREMIUM_ROLE_NAMES)
        or principal.is_premium_flag()
        or principal.has_role("premium")
    )


def classify_role(principal: Principal | None) -> Role:
    """Map a principal to its policy role, admin > premium > authenticated.

    An absent principal falls into the ``authenticated`` bucket for policy
    lookup. Key construction substitutes ``guest`` separately.
    """

    if is_admin(principal):
        return "admin"
    if is_premium(principal):
        return "premium"
    return "authenticated"
