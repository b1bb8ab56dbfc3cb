"""
Usage metering.

Counts what enterprise accounts create, per calendar month, for invoicing.
The meter itself does not know about account classes; callers decide who is
metered.
"""

from datetime import date
from typing import Optional

from common.core.clock import Clock, utc_now
from common.core.exceptions import ValidationError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.enums import UsageCategory, FEATURE_PREFIX
from packages.billing.models.domain.usage import UsageSnapshot
from packages.billing.periods import period_start_for
from packages.billing.repositories.usage_repository import UsageRepository

logger = get_logger(__name__)


class UsageService:
    def __init__(self, clock: Clock = utc_now):
        self.usage_repo = UsageRepository()
        self.clock = clock

    def current_period(self) -> date:
        return period_start_for(self.clock())

    @trace_span
    async def increment(self, user_id: int, category: str, amount: int = 1) -> None:
        """
        Add to the current period's counters.

        Categories:
            resource_created: resources_created += amount
            file_uploaded: files_uploaded += 1, storage_bytes += amount (bytes)
            feature:<name>: that feature's activations += amount

        Counters only grow: counts need ``amount >= 1`` and byte sizes
        ``amount >= 0``, anything else raises ValidationError.
        """
        period_start = self.current_period()

        minimum = 0 if category == UsageCategory.FILE_UPLOADED.value else 1
        if amount < minimum:
            raise ValidationError(
                f"Usage amount must be at least {minimum}",
                category=category,
                amount=amount,
            )

        if category == UsageCategory.RESOURCE_CREATED.value:
            await self.usage_repo.add_to_period(
                user_id, period_start, resources_created=amount
            )
        elif category == UsageCategory.FILE_UPLOADED.value:
            await self.usage_repo.add_to_period(
                user_id, period_start, files_uploaded=1, storage_bytes=amount
            )
        elif category.startswith(FEATURE_PREFIX) and len(category) > len(FEATURE_PREFIX):
            await self.usage_repo.add_feature_activation(
                user_id, period_start, category[len(FEATURE_PREFIX) :], amount
            )
        else:
            raise ValidationError(f"Unknown usage category: {category}")

        logger.debug(
            f"Metered {category} for user {user_id}",
            extra={
                "user_id": user_id,
                "category": category,
                "amount": amount,
                "period_start": period_start.isoformat(),
            },
        )

    @trace_span
    async def seed_period(self, user_id: int) -> None:
        """Create an empty record for the current period if none exists."""
        await self.usage_repo.ensure_period(user_id, self.current_period())

    @trace_span
    async def get_snapshot(
        self, user_id: int, period_start: Optional[date] = None
    ) -> Optional[UsageSnapshot]:
        return await self.usage_repo.get_snapshot(
            user_id, period_start or self.current_period()
        )
