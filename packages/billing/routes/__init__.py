"""Billing API routes."""

from packages.billing.routes import billing, plans, quota, subscriptions

__all__ = ["billing", "plans", "quota", "subscriptions"]
