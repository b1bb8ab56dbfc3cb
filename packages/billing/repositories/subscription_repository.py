"""
Repository for subscription management.
"""

from typing import Optional
from sqlalchemy import select

from common.repositories.base import BaseRepository
from packages.billing.models.database.subscription import SubscriptionEntity
from packages.billing.models.domain.subscription import Subscription
from packages.billing.models.domain.enums import SubscriptionStatus
from common.core.otel_axiom_exporter import trace_span


class SubscriptionRepository(BaseRepository[SubscriptionEntity, Subscription]):
    """Repository for user subscriptions. Rows are closed, never deleted."""

    def __init__(self):
        super().__init__(SubscriptionEntity, Subscription)

    async def _get_latest_with_status(
        self, user_id: int, status: SubscriptionStatus
    ) -> Optional[Subscription]:
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity)
                .where(
                    SubscriptionEntity.user_id == user_id,
                    SubscriptionEntity.status == status.value,
                )
                .order_by(SubscriptionEntity.id.desc())
                .limit(1)
            )
            db_subscription = result.scalar_one_or_none()
            return self._entity_to_domain(db_subscription) if db_subscription else None

    @trace_span
    async def get_active(self, user_id: int) -> Optional[Subscription]:
        """The user's active subscription, if any."""
        return await self._get_latest_with_status(user_id, SubscriptionStatus.ACTIVE)

    @trace_span
    async def get_pending(self, user_id: int) -> Optional[Subscription]:
        """Most recent subscription awaiting payment."""
        return await self._get_latest_with_status(
            user_id, SubscriptionStatus.PENDING_PAYMENT
        )

    @trace_span
    async def get_latest(self, user_id: int) -> Optional[Subscription]:
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity)
                .where(SubscriptionEntity.user_id == user_id)
                .order_by(SubscriptionEntity.id.desc())
                .limit(1)
            )
            db_subscription = result.scalar_one_or_none()
            return self._entity_to_domain(db_subscription) if db_subscription else None
