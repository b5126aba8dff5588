"""Best-effort logging of rejected requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """Context of a single rate limit rejection."""

    tier: str
    endpoint_type: str
    key: str
    limit: int
    user_id: str | None
    ip: str | None
    user_agent: str | None
    path: str
    method: str


class ViolationLogger:
    """Emit one structured warning per rejection.

    Logging never raises: a broken handler must not change the decision the
    gate has already made.
    """

    def __init__(self, *, enabled: bool = True, sink: logging.Logger | None = None) -> None:
        self.enabled = enabled
        self._sink = sink or logger

    def log(self, violation: Violation) -> None:
        if not self.enabled:
            return

        try:
            self._sink.warning(
                "rate_limit.exceeded",
                extra={
                    "tier": violation.tier,
                    "user_id": violation.user_id,
                    "ip": violation.ip,
                    "user_agent": violation.user_agent,
                    "path": violation.path,
                    "method": violation.method,
                    "endpoint_type": violation.endpoint_type,
                    "key": violation.key,
                    "limit": violation.limit,
                },
            )
        except Exception:  # noqa: BLE001
            logger.debug("rate_limit.violation_log_failed", exc_info=True)
