"""Routes for identified callers, throttled per user and role."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from tiered_ratelimit.core.auth import require_principal
from tiered_ratelimit.core.rate_limit import throttle
from tiered_ratelimit.schemas.rate_limit import THROTTLED_RESPONSES
from tiered_ratelimit.services.identity import UserPrincipal, classify_role


def _group(endpoint_type: str) -> APIRouter:
    return APIRouter(
        tags=["Authenticated"],
        dependencies=[Depends(require_principal), Depends(throttle("authenticated", endpoint_type))],
        responses=THROTTLED_RESPONSES,
    )


general_router = _group("general")
search_router = _group("search")
upload_router = _group("upload")
heavy_router = _group("heavy")


@general_router.get("/profile")
@general_router.get("/auth/me")
async def profile(principal: Annotated[UserPrincipal, Depends(require_principal)]) -> dict:
    """Return the caller identity and the role used for its limits."""

    return {
        "id": principal.user_id,
        "role": classify_role(principal),
    }


@search_router.get("/search/advanced")
async def advanced_search() -> dict:
    return {"results": []}


@upload_router.post("/upload")
async def upload() -> dict:
    return {"message": "File uploaded"}


@heavy_router.get("/reports/generate")
async def generate_report() -> dict:
    return {"message": "Report generated"}


@heavy_router.post("/export/data")
async def export_data() -> dict:
    return {"message": "Data exported"}


router = APIRouter()
for _sub in (general_router, search_router, upload_router, heavy_router):
    router.include_router(_sub)
