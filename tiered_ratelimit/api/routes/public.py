"""Public routes, throttled per client IP + user agent."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from tiered_ratelimit.core.auth import resolve_principal
from tiered_ratelimit.core.rate_limit import throttle
from tiered_ratelimit.schemas.rate_limit import THROTTLED_RESPONSES
from tiered_ratelimit.services.identity import UserPrincipal


def _group(endpoint_type: str) -> APIRouter:
    return APIRouter(
        tags=["Public"],
        dependencies=[Depends(throttle("public", endpoint_type))],
        responses=THROTTLED_RESPONSES,
    )


auth_router = _group("auth")
general_router = _group("general")
search_router = _group("search")


@auth_router.post("/auth/check")
async def check_api_key(
    principal: Annotated[UserPrincipal | None, Depends(resolve_principal)],
) -> dict:
    """Tell the caller whether its X-API-Key identifies a known user.

    Throttled with the strict ``auth`` limits so keys cannot be guessed
    at volume.
    """

    return {"authenticated": principal is not None}


@general_router.get("/public/info")
async def public_info() -> dict:
    return {"message": "Public information"}


@search_router.get("/search")
async def public_search() -> dict:
    return {"results": []}


router = APIRouter()
for _sub in (auth_router, general_router, search_router):
    router.include_router(_sub)
