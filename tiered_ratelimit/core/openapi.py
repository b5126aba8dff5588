"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- API Key security scheme (``X-API-Key``), required on authenticated and
  admin routes and optional elsewhere
- Tags metadata describing each rate limit tier
- Documentation of the X-RateLimit-* response headers on throttled routes
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Public",
        "description": "Anonymous endpoints limited per client IP and user agent.",
    },
    {
        "name": "Authenticated",
        "description": "Endpoints for identified callers, limited per user and role.",
    },
    {
        "name": "Admin",
        "description": "Admin-only endpoints with their own limits.",
    },
    {
        "name": "Health",
        "description": "Liveness checks (never throttled).",
    },
]

_PROTECTED_TAGS = {"Authenticated", "Admin"}
_THROTTLED_TAGS = {"Public", "Authenticated", "Admin"}

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": {
        "description": "Max attempts allowed in the current window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Attempts left in the current window (never negative).",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "UNIX timestamp at which the current window resets.",
        "schema": {"type": "integer"},
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Identifies the caller; limits are tracked per user.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                op_tags = set(operation.get("tags", []))
                if op_tags & _PROTECTED_TAGS:
                    operation["security"] = [{"ApiKeyAuth": []}]
                if op_tags & _THROTTLED_TAGS:
                    ok = operation.get("responses", {}).get("200")
                    if isinstance(ok, dict):
                        ok.setdefault("headers", {}).update(_RATE_LIMIT_HEADERS)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
