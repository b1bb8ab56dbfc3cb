"""Domain models for billing."""

from packages.billing.models.domain.enums import (
    SubscriptionStatus,
    InvoiceStatus,
    InvoiceType,
    UsageCategory,
    Feature,
)
from packages.billing.models.domain.plan import Plan
from packages.billing.models.domain.subscription import (
    Subscription,
    SubscriptionWithPlan,
    SubscriptionCreateModel,
    SubscriptionUpdateModel,
)
from packages.billing.models.domain.usage import UsageSnapshot
from packages.billing.models.domain.quota import QuotaDecision, QuotaUsage
from packages.billing.models.domain.billing import BillingBreakdown, LineItem
from packages.billing.models.domain.invoice import (
    Invoice,
    InvoiceCreateModel,
    InvoiceUpdateModel,
)

__all__ = [
    # Enums
    "SubscriptionStatus",
    "InvoiceStatus",
    "InvoiceType",
    "UsageCategory",
    "Feature",
    # Plans and subscriptions
    "Plan",
    "Subscription",
    "SubscriptionWithPlan",
    "SubscriptionCreateModel",
    "SubscriptionUpdateModel",
    # Usage and quota
    "UsageSnapshot",
    "QuotaDecision",
    "QuotaUsage",
    # Billing
    "BillingBreakdown",
    "LineItem",
    "Invoice",
    "InvoiceCreateModel",
    "InvoiceUpdateModel",
]
