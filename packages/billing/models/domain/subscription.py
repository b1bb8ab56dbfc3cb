"""
Domain models for subscriptions.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.plan import Plan


class Subscription(BaseModel):
    """A user's subscription row. At most one per user is ``active``."""

    id: int
    user_id: int
    plan_id: int
    status: SubscriptionStatus

    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    payment_reference: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def has_access(self) -> bool:
        return self.status.has_access()


class SubscriptionWithPlan(BaseModel):
    subscription: Subscription
    plan: Plan


class SubscriptionCreateModel(BaseModel):
    """Model for creating a new subscription."""

    user_id: int
    plan_id: int
    status: SubscriptionStatus
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    payment_reference: Optional[str] = None


class SubscriptionUpdateModel(BaseModel):
    """Model for updating a subscription. Only explicitly set fields are written."""

    status: Optional[SubscriptionStatus] = None
    started_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
