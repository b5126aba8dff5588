"""Tiered rate limit gate.

One gate class serves the three tiers. What differs between them is data
held in a ``TierConfig``: whether the admin role is mandatory, how the
principal segment of the counter key is built, and which policy table is
consulted.

Decision pipeline for one request:

1. Admin tier only: reject non-admin callers with ``Forbidden`` before any
   counter interaction.
2. Build the counter key and resolve the policy for this request.
3. Read the current count; at or above the limit the request is rejected
   with ``TooManyRequests`` and the counter is left untouched.
4. Otherwise hit the counter. ``hit`` returns the post-increment count, and
   a count above the limit means a concurrent request took the last slot,
   so this request is rejected too.

Allowed requests per window therefore never exceed ``max_attempts``, even
with many workers sharing a store. The stored count itself may overshoot
by the number of requests racing on the threshold.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping

from tiered_ratelimit.adapters.counter_store.base import AbstractCounterStore
from tiered_ratelimit.core.config import RateLimitSettings, settings
from tiered_ratelimit.core.errors import CounterStoreUnavailableError, ValidationAppError
from tiered_ratelimit.services.identity import Principal, classify_role, is_admin
from tiered_ratelimit.services.policy_resolver import PolicyConfig, resolve_policy
from tiered_ratelimit.services.violation_logger import Violation, ViolationLogger

logger = logging.getLogger(__name__)

GUEST_PRINCIPAL_ID = "guest"
USER_AGENT_HASH_CHARS = 8


@dataclass(frozen=True)
class RequestContext:
    """Request attributes a gate needs, detached from the HTTP framework."""

    method: str
    path: str
    ip: str | None = None
    user_agent: str | None = None
    principal: Principal | None = None

    @property
    def user_id(self) -> str | None:
        return self.principal.identifier if self.principal is not None else None


def client_fingerprint(ctx: RequestContext) -> str:
    """Principal segment for anonymous callers: IP plus short user agent hash."""

    ip = ctx.ip or "unknown"
    ua_hash = hashlib.md5((ctx.user_agent or "").encode()).hexdigest()[:USER_AGENT_HASH_CHARS]
    return f"{ip}:{ua_hash}"


def principal_or_guest(ctx: RequestContext) -> str:
    """Principal segment for identified callers (``guest`` when anonymous)."""

    return ctx.user_id or GUEST_PRINCIPAL_ID


@dataclass(frozen=True)
class TierConfig:
    """Per-tier behavior of the gate.

    Attributes:
        tier: Policy table name (``public``, ``authenticated``, ``admin``).
        key_prefix: Namespace of counter keys for this tier.
        requires_admin: Reject non-admin callers before counting.
        role_scoped: Whether the policy table has a role level.
        principal_id: Builds the principal segment of the counter key.
        exceeded_message: Human message returned on rejection.
    """

    tier: str
    key_prefix: str
    requires_admin: bool
    role_scoped: bool
    principal_id: Callable[[RequestContext], str]
    exceeded_message: str

    @property
    def limit_type(self) -> str:
        return f"{self.tier}_rate_limit"


PUBLIC_TIER = TierConfig(
    tier="public",
    key_prefix="public_rate_limit",
    requires_admin=False,
    role_scoped=False,
    principal_id=client_fingerprint,
    exceeded_message="Rate limit exceeded for public endpoints. Please try again later.",
)

AUTHENTICATED_TIER = TierConfig(
    tier="authenticated",
    key_prefix="auth_rate_limit",
    requires_admin=False,
    role_scoped=True,
    principal_id=principal_or_guest,
    exceeded_message="Rate limit exceeded for authenticated endpoints. Please try again later.",
)

ADMIN_TIER = TierConfig(
    tier="admin",
    key_prefix="admin_rate_limit",
    requires_admin=True,
    role_scoped=False,
    principal_id=principal_or_guest,
    exceeded_message="Admin rate limit exceeded. Please try again later.",
)

TIER_CONFIGS: dict[str, TierConfig] = {
    cfg.tier: cfg for cfg in (PUBLIC_TIER, AUTHENTICATED_TIER, ADMIN_TIER)
}


def get_tier_config(tier: str) -> TierConfig:
    """Look up a tier by name.

    Raises:
        ValidationAppError: If the tier is unknown.
    """
    try:
        return TIER_CONFIGS[tier]
    except KeyError:
        raise ValidationAppError(
            code="rate_limit_unknown_tier",
            message=f"Unknown rate limit tier: '{tier}'. Supported tiers: {', '.join(TIER_CONFIGS)}",
            details={"tier": tier},
        ) from None


@dataclass(frozen=True)
class Decision:
    """Outcome of a gate evaluation."""

    status_code: ClassVar[int] = 200
    allowed: ClassVar[bool] = False

    tier: str


@dataclass(frozen=True)
class Allowed(Decision):
    """Request may proceed.

    ``key`` is None when the store was unavailable and the tier fails open;
    such requests were not counted and carry no rate limit headers.
    """

    allowed: ClassVar[bool] = True

    key: str | None
    policy: PolicyConfig


@dataclass(frozen=True)
class Forbidden(Decision):
    """Caller lacks the role the tier requires."""

    status_code: ClassVar[int] = 403

    message: str = "Admin access required."

    def body(self) -> dict[str, Any]:
        return {"error": "Forbidden", "message": self.message}


@dataclass(frozen=True)
class TooManyRequests(Decision):
    """Counter reached the policy limit for this window."""

    status_code: ClassVar[int] = 429

    key: str
    policy: PolicyConfig
    retry_after: int
    message: str

    def body(self) -> dict[str, Any]:
        return {
            "error": "Too Many Requests",
            "message": self.message,
            "retry_after": self.retry_after,
            "limit": self.policy.max_attempts,
            "type": f"{self.tier}_rate_limit",
        }


@dataclass(frozen=True)
class ServiceUnavailable(Decision):
    """Counter store failed and the tier fails closed."""

    status_code: ClassVar[int] = 503

    message: str = "Rate limiting is temporarily unavailable. Please try again later."

    def body(self) -> dict[str, Any]:
        return {
            "error": "Service Unavailable",
            "message": self.message,
            "type": f"{self.tier}_rate_limit",
        }


class RateLimitGate:
    """Allow/deny decisions for one tier backed by a shared counter store."""

    def __init__(
        self,
        tier_config: TierConfig,
        store: AbstractCounterStore,
        *,
        policies: Mapping[str, Any],
        decay_minutes: int = 1,
        add_headers: bool = True,
        fail_closed: bool = False,
        violation_logger: ViolationLogger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if decay_minutes < 1:
            raise ValueError("decay_minutes must be >= 1")

        self.tier_config = tier_config
        self.store = store
        self.policies = policies
        self.decay_minutes = decay_minutes
        self.add_headers = add_headers
        self.fail_closed = fail_closed
        self.violation_logger = violation_logger or ViolationLogger()
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        tier: str,
        store: AbstractCounterStore,
        rate_limit_settings: RateLimitSettings | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "RateLimitGate":
        """Build a gate for ``tier`` from rate limit settings."""

        cfg = rate_limit_settings or settings.rate_limits
        return cls(
            get_tier_config(tier),
            store,
            policies=cfg.policies,
            decay_minutes=cfg.decay_minutes,
            add_headers=cfg.add_headers,
            fail_closed=cfg.is_fail_closed(tier),
            violation_logger=ViolationLogger(enabled=cfg.log_violations),
            clock=clock,
        )

    @property
    def tier(self) -> str:
        return self.tier_config.tier

    def build_key(self, ctx: RequestContext, endpoint_type: str) -> str:
        principal_id = self.tier_config.principal_id(ctx)
        return f"{self.tier_config.key_prefix}:{endpoint_type}:{principal_id}"

    def resolve_policy(self, ctx: RequestContext, endpoint_type: str) -> PolicyConfig:
        role = classify_role(ctx.principal) if self.tier_config.role_scoped else None
        return resolve_policy(
            self.policies,
            self.tier,
            endpoint_type,
            role,
            ctx.method,
            decay_minutes=self.decay_minutes,
        )

    def authorize(self, ctx: RequestContext) -> Forbidden | None:
        """Return a Forbidden decision when the tier's role check fails."""

        if self.tier_config.requires_admin and not is_admin(ctx.principal):
            return Forbidden(tier=self.tier)
        return None

    def evaluate(self, ctx: RequestContext, endpoint_type: str = "general") -> Decision:
        """Decide whether the request may proceed, counting it if so."""

        forbidden = self.authorize(ctx)
        if forbidden is not None:
            logger.info(
                "rate_limit.forbidden",
                extra={"tier": self.tier, "endpoint_type": endpoint_type, "user_id": ctx.user_id},
            )
            return forbidden

        key = self.build_key(ctx, endpoint_type)
        policy = self.resolve_policy(ctx, endpoint_type)

        try:
            if self.store.attempts(key) >= policy.max_attempts:
                return self._reject(ctx, endpoint_type, key, policy)

            count = self.store.hit(key, policy.decay_seconds)
            if count > policy.max_attempts:
                return self._reject(ctx, endpoint_type, key, policy)
        except CounterStoreUnavailableError as exc:
            return self._on_store_failure(endpoint_type, key, policy, exc)

        logger.debug(
            "rate_limit.allowed",
            extra={
                "tier": self.tier,
                "endpoint_type": endpoint_type,
                "limit": policy.max_attempts,
                "count": count,
            },
        )
        return Allowed(tier=self.tier, key=key, policy=policy)

    def _reject(
        self,
        ctx: RequestContext,
        endpoint_type: str,
        key: str,
        policy: PolicyConfig,
    ) -> TooManyRequests:
        self.violation_logger.log(
            Violation(
                tier=self.tier,
                endpoint_type=endpoint_type,
                key=key,
                limit=policy.max_attempts,
                user_id=ctx.user_id,
                ip=ctx.ip,
                user_agent=ctx.user_agent,
                path=ctx.path,
                method=ctx.method,
            )
        )
        return TooManyRequests(
            tier=self.tier,
            key=key,
            policy=policy,
            retry_after=self.store.available_in(key),
            message=self.tier_config.exceeded_message,
        )

    def _on_store_failure(
        self,
        endpoint_type: str,
        key: str,
        policy: PolicyConfig,
        exc: CounterStoreUnavailableError,
    ) -> Decision:
        logger.error(
            "rate_limit.store_unavailable",
            extra={
                "tier": self.tier,
                "endpoint_type": endpoint_type,
                "fail_closed": self.fail_closed,
                "error_code": exc.code,
            },
        )
        if self.fail_closed:
            return ServiceUnavailable(tier=self.tier)
        return Allowed(tier=self.tier, key=None, policy=policy)

    def headers_for(self, decision: Decision) -> dict[str, str]:
        """Build X-RateLimit-* headers (plus Retry-After on rejection).

        Returns an empty mapping when headers are disabled, when the
        decision was not counted, or when the store cannot be read.
        """

        if not self.add_headers:
            return {}

        if isinstance(decision, TooManyRequests):
            reset_at = int(self._clock()) + decision.retry_after
            return {
                "Retry-After": str(decision.retry_after),
                "X-RateLimit-Limit": str(decision.policy.max_attempts),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset_at),
            }

        if not isinstance(decision, Allowed) or decision.key is None:
            return {}

        limit = decision.policy.max_attempts
        try:
            retries_left = self.store.retries_left(decision.key, limit)
            available_in = self.store.available_in(decision.key)
        except CounterStoreUnavailableError:
            logger.warning(
                "rate_limit.headers_skipped",
                extra={"tier": self.tier, "reason": "store_unavailable"},
            )
            return {}

        return {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(min(limit, max(0, retries_left))),
            "X-RateLimit-Reset": str(int(self._clock()) + available_in),
        }
