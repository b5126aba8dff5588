from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from tiered_ratelimit import __version__

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Never throttled. Used by load balancers and monitoring systems to
    determine service health.

    Returns:
        dict: ``status``, current UTC ``timestamp`` and service ``version``.
    """

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }
