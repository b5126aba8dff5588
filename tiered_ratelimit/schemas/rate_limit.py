"""Pydantic schemas for gate rejection bodies (used in OpenAPI docs)."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ForbiddenResponse(BaseModel):
    """Body returned when the admin gate rejects a caller."""

    error: str = Field("Forbidden", description="Fixed error label.")
    message: str = Field(
        "Admin access required.", description="Human-readable reason."
    )


class TooManyRequestsResponse(BaseModel):
    """Body returned when a caller exceeds its limit."""

    error: str = Field("Too Many Requests", description="Fixed error label.")
    message: str = Field(..., description="Tier-specific human-readable message.")
    retry_after: int = Field(
        ..., description="Seconds until the current window resets.", ge=0
    )
    limit: int = Field(..., description="Max attempts allowed in the window.", ge=0)
    type: str = Field(
        ...,
        description="Machine-readable discriminator: public_rate_limit, authenticated_rate_limit or admin_rate_limit.",
    )


class ServiceUnavailableResponse(BaseModel):
    """Body returned when a fail-closed tier cannot reach the counter store."""

    error: str = Field("Service Unavailable", description="Fixed error label.")
    message: str = Field(..., description="Human-readable reason.")
    type: str = Field(..., description="Tier discriminator, e.g. admin_rate_limit.")


THROTTLED_RESPONSES = {
    429: {"model": TooManyRequestsResponse, "description": "Rate limit exceeded"},
}

ADMIN_RESPONSES = {
    403: {"model": ForbiddenResponse, "description": "Admin access required"},
    429: {"model": TooManyRequestsResponse, "description": "Rate limit exceeded"},
    503: {"model": ServiceUnavailableResponse, "description": "Counter store unavailable"},
}
