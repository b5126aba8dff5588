"""Policy lookup for rate limit gates.

Tables come from configuration:

- ``public`` and ``admin``: ``endpoint_type -> method -> max_attempts``
- ``authenticated``: ``endpoint_type -> role -> method -> max_attempts``

Lookup order (first hit wins):

1. ``[endpoint_type][role][method]``
2. ``[endpoint_type][role]["get"]``
3. ``["general"][role][method]``
4. built-in tier default (60 for public, 100 otherwise)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

TIERS = ("public", "authenticated", "admin")
ROLE_SCOPED_TIERS = frozenset({"authenticated"})
DEFAULT_ROLE = "authenticated"
GENERAL_ENDPOINT_TYPE = "general"

_TIER_DEFAULT_MAX_ATTEMPTS = {"public": 60}
_FALLBACK_MAX_ATTEMPTS = 100


@dataclass(frozen=True)
class PolicyConfig:
    """Limits applied to one request.

    Attributes:
        max_attempts: Requests allowed per window.
        decay_seconds: Window length in seconds.
    """

    max_attempts: int
    decay_seconds: int


def tier_default(tier: str) -> int:
    """Return the built-in max_attempts used when no table entry matches."""

    return _TIER_DEFAULT_MAX_ATTEMPTS.get(tier, _FALLBACK_MAX_ATTEMPTS)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_limit(value: Any) -> int | None:
    # bool is an int subclass; a stray true/false in config is not a limit
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _method_table(
    tier_table: Mapping[str, Any],
    endpoint_type: str,
    role: str | None,
) -> Mapping[str, Any] | None:
    """Return the method -> limit mapping for a type (and role), if present."""

    if endpoint_type not in tier_table:
        return None
    type_table = _as_mapping(tier_table[endpoint_type])
    if role is None:
        return type_table
    if role in type_table:
        return _as_mapping(type_table[role])
    if DEFAULT_ROLE in type_table:
        return _as_mapping(type_table[DEFAULT_ROLE])
    return None


def resolve_max_attempts(
    policies: Mapping[str, Any],
    tier: str,
    endpoint_type: str,
    role: str | None,
    method: str,
) -> int:
    """Resolve max_attempts for a request, never failing on missing levels."""

    tier_table = _as_mapping(policies.get(tier))
    scoped_role = (role or DEFAULT_ROLE) if tier in ROLE_SCOPED_TIERS else None
    verb = method.lower()

    methods = _method_table(tier_table, endpoint_type, scoped_role)
    if methods is not None:
        for candidate in (verb, "get"):
            limit = _as_limit(methods.get(candidate))
            if limit is not None:
                return limit

    general = _method_table(tier_table, GENERAL_ENDPOINT_TYPE, scoped_role)
    if general is not None:
        limit = _as_limit(general.get(verb))
        if limit is not None:
            return limit

    return tier_default(tier)


def resolve_policy(
    policies: Mapping[str, Any],
    tier: str,
    endpoint_type: str,
    role: str | None,
    method: str,
    *,
    decay_minutes: int = 1,
) -> PolicyConfig:
    """Resolve the full policy for one request.

    Args:
        policies: Tier tables (see module docstring).
        tier: One of ``public``, ``authenticated``, ``admin``.
        endpoint_type: Route-supplied tag such as ``auth`` or ``search``.
        role: Caller role; ignored for tiers without a role level.
        method: HTTP method, case-insensitive.
        decay_minutes: Global window length.

    Returns:
        PolicyConfig with the resolved limit and window.
    """

    return PolicyConfig(
        max_attempts=resolve_max_attempts(policies, tier, endpoint_type, role, method),
        decay_seconds=decay_minutes * 60,
    )
