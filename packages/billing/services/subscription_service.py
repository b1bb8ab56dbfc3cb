"""
Service for managing subscriptions.

The ledger keeps every subscription a user ever had. Moves between states go
through ``SubscriptionStatus.transition_to`` and the partial unique index on
``subscriptions`` guarantees a single active row per user.
"""

from typing import Optional

from common.core.clock import Clock, utc_now
from common.core.config import settings
from common.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import transactional
from common.repositories.base import unique_conflict
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.subscription import (
    Subscription,
    SubscriptionWithPlan,
    SubscriptionCreateModel,
    SubscriptionUpdateModel,
)
from packages.billing.repositories.subscription_repository import SubscriptionRepository
from packages.billing.repositories.invoice_repository import InvoiceRepository
from packages.billing.services.plans_service import PlansService
from packages.billing.services.usage_service import UsageService
from packages.billing.services.billing_service import BillingService
from packages.users.models.domain.enums import AccountClass, AccountStatus
from packages.users.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class SubscriptionService:
    """Service for subscription management."""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self.subscription_repo = SubscriptionRepository()
        self.invoice_repo = InvoiceRepository()
        self.user_repo = UserRepository()
        self.plans_service = PlansService()
        self.usage_service = UsageService(clock=clock)
        self.billing_service = BillingService(clock=clock)

    def _initial_status(self, plan_name: str) -> SubscriptionStatus:
        # Enterprise access starts only once the registration fee is paid
        if plan_name == settings.enterprise_plan_name:
            return SubscriptionStatus.PENDING_PAYMENT
        return SubscriptionStatus.ACTIVE

    async def _create(self, user_id: int, plan_id: int, status: SubscriptionStatus):
        # Losing a race past the pre-checks hits the one-active-per-user index
        with unique_conflict("User already has an active subscription", user_id=user_id):
            return await self.subscription_repo.create(
                SubscriptionCreateModel(
                    user_id=user_id,
                    plan_id=plan_id,
                    status=status,
                    started_at=self.clock() if status == SubscriptionStatus.ACTIVE else None,
                )
            )

    async def _move(
        self, subscription: Subscription, target: SubscriptionStatus, **fields
    ) -> Subscription:
        subscription.status.transition_to(target)
        updated = await self.subscription_repo.update(
            subscription.id, SubscriptionUpdateModel(status=target, **fields)
        )
        logger.info(
            f"Subscription {subscription.id} {subscription.status.value} -> {target.value}",
            extra={
                "subscription_id": subscription.id,
                "user_id": subscription.user_id,
                "from_status": subscription.status.value,
                "to_status": target.value,
            },
        )
        return updated

    # =========================================================================
    # Reads
    # =========================================================================

    @trace_span
    async def get_active(self, user_id: int) -> Optional[Subscription]:
        return await self.subscription_repo.get_active(user_id)

    @trace_span
    async def get_active_with_plan(self, user_id: int) -> Optional[SubscriptionWithPlan]:
        subscription = await self.subscription_repo.get_active(user_id)
        if subscription is None:
            return None
        plan = await self.plans_service.get_plan(subscription.plan_id)
        return SubscriptionWithPlan(subscription=subscription, plan=plan)

    @trace_span
    async def get_current(self, user_id: int) -> Optional[SubscriptionWithPlan]:
        """Active subscription, else the latest one in any state."""
        subscription = await self.subscription_repo.get_active(user_id)
        if subscription is None:
            subscription = await self.subscription_repo.get_latest(user_id)
        if subscription is None:
            return None
        plan = await self.plans_service.get_plan(subscription.plan_id)
        return SubscriptionWithPlan(subscription=subscription, plan=plan)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @trace_span
    async def assign_initial_plan(self, user_id: int, plan_name: str) -> Subscription:
        """Registration-time subscription: active for free, pending for enterprise."""
        plan = await self.plans_service.require_by_name(plan_name)
        subscription = await self._create(user_id, plan.id, self._initial_status(plan.name))
        logger.info(
            f"Assigned {plan.name} plan to user {user_id}",
            extra={"user_id": user_id, "plan": plan.name, "status": subscription.status.value},
        )
        return subscription

    @trace_span
    @transactional
    async def purchase(self, user_id: int, plan_id: int) -> SubscriptionWithPlan:
        """
        Subscribe a user with no current plan.

        Raises:
            NotFoundError: plan missing or inactive
            ConflictError: user already has an active or pending subscription
        """
        plan = await self.plans_service.get_active_plan(plan_id)

        if await self.subscription_repo.get_active(user_id):
            raise ConflictError(
                "User already has an active subscription. Use switch instead."
            )
        if await self.subscription_repo.get_pending(user_id):
            raise ConflictError("User already has a subscription awaiting payment")

        subscription = await self._create(user_id, plan.id, self._initial_status(plan.name))
        logger.info(
            f"User {user_id} purchased plan {plan.name}",
            extra={"user_id": user_id, "plan_id": plan.id, "status": subscription.status.value},
        )
        return SubscriptionWithPlan(subscription=subscription, plan=plan)

    @trace_span
    @transactional
    async def activate(self, user_id: int, payment_reference: str) -> SubscriptionWithPlan:
        """
        Complete enterprise registration once the fee is paid.

        In one transaction: the pending subscription becomes active, the account
        becomes active, the registration fee invoice is marked paid and the
        current usage period is seeded.
        """
        user = await self.user_repo.get(user_id)
        if user is None or user.account_class != AccountClass.ENTERPRISE:
            raise NotFoundError("Enterprise account not found", user_id=user_id)
        if user.account_status == AccountStatus.ACTIVE:
            raise ConflictError("Account is already active", user_id=user_id)

        pending = await self.subscription_repo.get_pending(user_id)
        if pending is None:
            raise NotFoundError("No subscription awaiting payment", user_id=user_id)

        now = self.clock()
        subscription = await self._move(
            pending,
            SubscriptionStatus.ACTIVE,
            started_at=now,
            payment_reference=payment_reference,
        )

        user.account_status.transition_to(AccountStatus.ACTIVE)
        await self.user_repo.set_status(user_id, AccountStatus.ACTIVE)

        fee = await self.invoice_repo.get_pending_registration_fee(user_id)
        if fee is not None:
            await self.billing_service.settle(fee, payment_reference, "registration")
        else:
            logger.warning(
                f"No pending registration fee for user {user_id} during activation",
                extra={"user_id": user_id},
            )

        await self.usage_service.seed_period(user_id)

        plan = await self.plans_service.get_plan(subscription.plan_id)
        logger.info(
            f"Activated enterprise account {user_id}",
            extra={"user_id": user_id, "payment_reference": payment_reference},
        )
        return SubscriptionWithPlan(subscription=subscription, plan=plan)

    @trace_span
    @transactional
    async def switch_plan(self, user_id: int, new_plan_id: int) -> SubscriptionWithPlan:
        """
        Replace the active subscription with one on another plan.

        The current row is cancelled before the new active row is inserted,
        both in the same transaction.
        """
        current = await self.subscription_repo.get_active(user_id)
        if current is None:
            raise NotFoundError("No active subscription", user_id=user_id)

        plan = await self.plans_service.get_active_plan(new_plan_id)
        if plan.id == current.plan_id:
            raise ValidationError("Already subscribed to this plan", plan_id=plan.id)

        await self._move(current, SubscriptionStatus.CANCELLED, cancelled_at=self.clock())
        subscription = await self._create(user_id, plan.id, SubscriptionStatus.ACTIVE)

        logger.info(
            f"User {user_id} switched plan {current.plan_id} -> {plan.id}",
            extra={"user_id": user_id, "from_plan_id": current.plan_id, "to_plan_id": plan.id},
        )
        return SubscriptionWithPlan(subscription=subscription, plan=plan)

    @trace_span
    @transactional
    async def cancel(self, user_id: int) -> SubscriptionWithPlan:
        """Cancel the active subscription. Only enterprise plans can be cancelled."""
        current = await self.subscription_repo.get_active(user_id)
        if current is None:
            raise NotFoundError("No active subscription", user_id=user_id)

        plan = await self.plans_service.get_plan(current.plan_id)
        if plan is None or plan.name != settings.enterprise_plan_name:
            raise ForbiddenError("Only enterprise subscriptions can be cancelled")

        subscription = await self._move(
            current, SubscriptionStatus.CANCELLED, cancelled_at=self.clock()
        )
        return SubscriptionWithPlan(subscription=subscription, plan=plan)
