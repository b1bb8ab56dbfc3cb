"""Billing services."""

from packages.billing.services.plans_service import PlansService
from packages.billing.services.subscription_service import SubscriptionService
from packages.billing.services.usage_service import UsageService
from packages.billing.services.quota_service import QuotaService
from packages.billing.services.billing_service import BillingService

__all__ = [
    "PlansService",
    "SubscriptionService",
    "UsageService",
    "QuotaService",
    "BillingService",
]
