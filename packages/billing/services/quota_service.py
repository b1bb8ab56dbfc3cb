"""
Service for quota enforcement and checking.

This is the critical service that prevents link creation beyond plan limits.
Counts are always read live from ``links``; nothing here is cached.
"""

from common.core.config import settings
from common.core.exceptions import NotFoundError, QuotaExceededError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import transactional
from packages.auth.models.domain.identity import Identity, AccountIdentity
from packages.billing.models.domain.plan import Plan
from packages.billing.models.domain.quota import QuotaDecision, QuotaUsage
from packages.billing.models.schemas.billing import UserQuotaResponse, PlanSummary
from packages.billing.repositories.subscription_repository import SubscriptionRepository
from packages.billing.services.plans_service import PlansService
from packages.links.repositories.link_repository import LinkRepository

logger = get_logger(__name__)

QUOTA_EXCEEDED = "quota_exceeded"
NO_ACTIVE_PLAN = "no_active_plan"


def _limited_usage(used: int, limit: int) -> QuotaUsage:
    return QuotaUsage(used=used, limit=limit, remaining=max(limit - used, 0))


class QuotaService:
    """Service for quota enforcement."""

    def __init__(self):
        self.subscription_repo = SubscriptionRepository()
        self.link_repo = LinkRepository()
        self.plans_service = PlansService()

    async def _evaluate_anonymous(self, ip: str) -> QuotaDecision:
        free_plan = await self.plans_service.get_by_name(settings.free_plan_name)
        limit = settings.anonymous_url_limit
        if free_plan is not None and free_plan.url_limit is not None:
            limit = free_plan.url_limit

        used = await self.link_repo.count_for_anonymous_ip(ip)
        allowed = used < limit
        return QuotaDecision(
            allowed=allowed,
            reason=None if allowed else QUOTA_EXCEEDED,
            plan_id=free_plan.id if free_plan else None,
            plan_name=free_plan.name if free_plan else settings.free_plan_name,
            usage=_limited_usage(used, limit),
        )

    async def _evaluate_account(self, user_id: int) -> QuotaDecision:
        subscription = await self.subscription_repo.get_active(user_id)
        if subscription is None:
            used = await self.link_repo.count_for_user(user_id)
            return QuotaDecision(
                allowed=False, reason=NO_ACTIVE_PLAN, usage=QuotaUsage(used=used)
            )

        plan: Plan = await self.plans_service.get_plan(subscription.plan_id)
        used = await self.link_repo.count_for_user(user_id)

        if plan.is_unlimited:
            return QuotaDecision(
                allowed=True,
                plan_id=plan.id,
                plan_name=plan.name,
                is_unlimited=True,
                usage=QuotaUsage(used=used),
            )

        allowed = used < plan.url_limit
        return QuotaDecision(
            allowed=allowed,
            reason=None if allowed else QUOTA_EXCEEDED,
            plan_id=plan.id,
            plan_name=plan.name,
            usage=_limited_usage(used, plan.url_limit),
        )

    @trace_span
    async def evaluate(self, identity: Identity) -> QuotaDecision:
        """
        Decide whether ``identity`` may create another link.

        Read-only. Creation paths must use ``reserve`` so the decision and the
        insert happen under the same lock.
        """
        if isinstance(identity, AccountIdentity):
            return await self._evaluate_account(identity.user_id)
        return await self._evaluate_anonymous(identity.ip)

    @trace_span
    async def check(self, identity: Identity) -> QuotaDecision:
        """
        Evaluate and raise on denial, without locking.

        Only good as an early rejection before expensive work such as an
        upload; the insert itself still needs ``reserve``.
        """
        decision = await self.evaluate(identity)
        self._raise_if_denied(identity, decision)
        return decision

    @trace_span
    @transactional
    async def reserve(self, identity: Identity) -> QuotaDecision:
        """
        Lock the identity's quota for the current transaction, then evaluate.

        Must run in the transaction that inserts the link; the lock is held
        until that transaction ends.

        Raises:
            QuotaExceededError: reason quota_exceeded or no_active_plan
        """
        await self.link_repo.acquire_owner_lock(identity.owner_key)
        decision = await self.evaluate(identity)
        self._raise_if_denied(identity, decision)
        return decision

    def _raise_if_denied(self, identity: Identity, decision: QuotaDecision) -> None:
        if not decision.allowed:
            logger.warning(
                f"Quota denied for {identity.owner_key}: {decision.reason}",
                extra={
                    "owner": identity.owner_key,
                    "reason": decision.reason,
                    "used": decision.usage.used,
                    "limit": decision.usage.limit,
                },
            )
            message = (
                "No active subscription. Purchase a plan to continue."
                if decision.reason == NO_ACTIVE_PLAN
                else f"Link limit reached ({decision.usage.limit}). Upgrade your plan for more."
            )
            raise QuotaExceededError(
                decision.reason,
                message,
                usage=decision.usage.model_dump(by_alias=True),
            )

    @trace_span
    async def quota_for_account(self, user_id: int) -> UserQuotaResponse:
        """Plan summary and usage for the account's active subscription."""
        decision = await self._evaluate_account(user_id)
        if decision.reason == NO_ACTIVE_PLAN:
            raise NotFoundError("No active plan found", reason=NO_ACTIVE_PLAN)

        plan = await self.plans_service.get_plan(decision.plan_id)
        return UserQuotaResponse(
            plan=PlanSummary.model_validate(plan),
            usage=decision.usage,
            is_unlimited=decision.is_unlimited,
            can_create=decision.allowed,
        )
