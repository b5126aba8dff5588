"""Caller identity lookup.

Resolves the ``X-API-Key`` header to a principal using a static key table
from configuration. Token issuance and validation live elsewhere; this
module only answers "who is calling" for the rate limit gates.

Entry format for ``APP_API_KEYS`` (comma-separated)::

    key:user_id[:role]

Design principles:
- Single Responsibility: Only maps keys to principals
- Dependency Injection: Used via FastAPI Depends() for loose coupling
- Configuration-driven: Keys managed via env vars, not hardcoded
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header

from tiered_ratelimit.core.config import settings
from tiered_ratelimit.core.errors import AuthenticationAppError, ValidationAppError
from tiered_ratelimit.services.identity import UserPrincipal

logger = logging.getLogger(__name__)


def _hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def parse_api_keys(keys_string: str | None) -> dict[str, UserPrincipal]:
    """Parse configured identity entries into a key -> principal map.

    Args:
        keys_string: Comma-separated ``key:user_id[:role]`` entries, or None.

    Returns:
        Mapping of API key to principal.

    Raises:
        ValidationAppError: If an entry lacks a key or user id.

    Examples:
        >>> parse_api_keys("k1:42:admin")["k1"].role_name
        'admin'
        >>> parse_api_keys(None)
        {}
    """
    if not keys_string:
        return {}

    principals: dict[str, UserPrincipal] = {}
    for raw_entry in keys_string.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue

        parts = [part.strip() for part in entry.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValidationAppError(
                code="invalid_api_key_entry",
                message="API key entries must look like key:user_id[:role]",
                details={"hint": "Check the APP_API_KEYS environment variable"},
            )

        role = parts[2] if len(parts) > 2 and parts[2] else None
        principals[parts[0]] = UserPrincipal(user_id=parts[1], role_name=role)

    return principals


def lookup_principal(api_key: str | None) -> UserPrincipal | None:
    """Return the principal for an API key, or None for anonymous callers.

    Pure lookup logic without FastAPI dependencies for easy testing.

    Raises:
        AuthenticationAppError: If the key is unknown and keys are required.
    """
    if not api_key:
        return None

    principal = parse_api_keys(settings.app.api_keys).get(api_key)
    if principal is not None:
        return principal

    logger.warning(
        "auth.unknown_key",
        extra={
            "api_key_hash": _hash_api_key(api_key),
            "auth_required": settings.app.api_key_required,
        },
    )
    if settings.app.api_key_required:
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid API key",
            details={"hint": "Provide a key listed in APP_API_KEYS"},
        )
    return None


async def resolve_principal(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> UserPrincipal | None:
    """FastAPI dependency returning the caller principal (None if anonymous)."""

    principal = lookup_principal(x_api_key)
    if principal is not None:
        logger.debug(
            "auth.success",
            extra={"user_id": principal.user_id, "api_key_hash": _hash_api_key(x_api_key or "")},
        )
    return principal


async def require_principal(
    principal: Annotated[UserPrincipal | None, Depends(resolve_principal)],
) -> UserPrincipal:
    """FastAPI dependency for routes that need an identified caller.

    Usage:
        router = APIRouter(dependencies=[Depends(require_principal)])

    Raises:
        AuthenticationAppError: If the request carries no API key.
    """
    if principal is None:
        logger.info("auth.missing_key", extra={"api_key_present": False})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )
    return principal
