"""Database models for billing."""

from packages.billing.models.database.plan import PlanEntity
from packages.billing.models.database.subscription import SubscriptionEntity
from packages.billing.models.database.usage import (
    UsagePeriodEntity,
    UsageFeatureCounterEntity,
)
from packages.billing.models.database.invoice import InvoiceEntity

__all__ = [
    "PlanEntity",
    "SubscriptionEntity",
    "UsagePeriodEntity",
    "UsageFeatureCounterEntity",
    "InvoiceEntity",
]
