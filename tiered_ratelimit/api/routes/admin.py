"""Admin routes. Non-admin callers are rejected before any counting."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from tiered_ratelimit.core.auth import require_principal
from tiered_ratelimit.core.rate_limit import throttle
from tiered_ratelimit.schemas.rate_limit import ADMIN_RESPONSES


def _group(endpoint_type: str) -> APIRouter:
    return APIRouter(
        prefix="/admin",
        tags=["Admin"],
        dependencies=[Depends(require_principal), Depends(throttle("admin", endpoint_type))],
        responses=ADMIN_RESPONSES,
    )


general_router = _group("general")
users_router = _group("users")
settings_router = _group("settings")
logs_router = _group("logs")
reports_router = _group("reports")


@general_router.get("/dashboard")
async def dashboard() -> dict:
    return {"message": "Admin dashboard"}


@users_router.get("/users")
async def list_users() -> dict:
    return {"users": []}


@users_router.post("/users")
async def create_user() -> dict:
    return {"message": "User created"}


@users_router.put("/users/{user_id}")
async def update_user(user_id: str) -> dict:
    return {"message": "User updated"}


@users_router.delete("/users/{user_id}")
async def delete_user(user_id: str) -> dict:
    return {"message": "User deleted"}


@settings_router.get("/settings")
async def get_settings() -> dict:
    return {"settings": []}


@settings_router.put("/settings")
async def update_settings() -> dict:
    return {"message": "Settings updated"}


@logs_router.get("/logs")
async def get_logs() -> dict:
    return {"logs": []}


@reports_router.get("/reports")
async def list_reports() -> dict:
    return {"reports": []}


@reports_router.post("/reports/generate")
async def generate_admin_report() -> dict:
    return {"message": "Admin report generated"}


router = APIRouter()
for _sub in (general_router, users_router, settings_router, logs_router, reports_router):
    router.include_router(_sub)
