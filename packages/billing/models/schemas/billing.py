"""
API schemas for billing operations.

Request and response models for plan, subscription, quota and billing
endpoints. All bodies are camelCase on the wire.
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.billing import BillingBreakdown
from packages.billing.models.domain.enums import (
    SubscriptionStatus,
    InvoiceStatus,
    InvoiceType,
)
from packages.billing.models.domain.invoice import Invoice
from packages.billing.models.domain.money import Money
from packages.billing.models.domain.quota import QuotaUsage
from packages.billing.models.domain.subscription import SubscriptionWithPlan
from packages.billing.models.domain.usage import UsageSnapshot
from packages.billing.periods import format_month, period_end_for


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ============================================================================
# Plan Schemas
# ============================================================================


class PlanSummary(CamelModel):
    id: int
    name: str
    display_name: str
    url_limit: Optional[int] = Field(None, description="None means unlimited")
    price: Money
    file_size_limit_bytes: int


class PlansResponse(CamelModel):
    plans: List[PlanSummary]


# ============================================================================
# Subscription Schemas
# ============================================================================


class PurchaseRequest(CamelModel):
    plan_id: int


class SwitchPlanRequest(CamelModel):
    new_plan_id: int


class SubscriptionResponse(CamelModel):
    id: int
    status: SubscriptionStatus
    plan: PlanSummary
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    payment_reference: Optional[str] = None

    @classmethod
    def from_domain(cls, value: SubscriptionWithPlan) -> "SubscriptionResponse":
        subscription = value.subscription
        return cls(
            id=subscription.id,
            status=subscription.status,
            plan=PlanSummary.model_validate(value.plan),
            started_at=subscription.started_at,
            expires_at=subscription.expires_at,
            cancelled_at=subscription.cancelled_at,
            payment_reference=subscription.payment_reference,
        )


# ============================================================================
# Quota Schemas
# ============================================================================


class UserQuotaResponse(CamelModel):
    plan: PlanSummary
    usage: QuotaUsage
    is_unlimited: bool
    can_create: bool


# ============================================================================
# Usage & Billing Schemas
# ============================================================================


class UsageResponse(CamelModel):
    """Current period counters."""

    period: str = Field(..., description="YYYY-MM")
    period_start: date
    period_end: date
    resources_created: int = 0
    files_uploaded: int = 0
    storage_bytes: int = 0
    features: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_snapshot(
        cls, period_start: date, snapshot: Optional[UsageSnapshot]
    ) -> "UsageResponse":
        counters = snapshot.model_dump(include={
            "resources_created", "files_uploaded", "storage_bytes", "features"
        }) if snapshot else {}
        return cls(
            period=format_month(period_start),
            period_start=period_start,
            period_end=period_end_for(period_start),
            **counters,
        )


class BillingCalculationResponse(CamelModel):
    period: str
    breakdown: BillingBreakdown


class GenerateInvoiceRequest(CamelModel):
    month: Optional[str] = Field(
        None, description="YYYY-MM. Defaults to the previous month."
    )


class InvoiceResponse(CamelModel):
    id: int
    invoice_type: InvoiceType
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    amount: Money
    currency: str
    status: InvoiceStatus
    usage_snapshot: Optional[dict] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls.model_validate(invoice.model_dump())


class InvoiceListResponse(CamelModel):
    invoices: List[InvoiceResponse]


class PayInvoiceRequest(CamelModel):
    payment_reference: str = Field(..., min_length=1)
    payment_method: Optional[str] = None


class RegistrationFee(CamelModel):
    invoice_id: int
    amount: Money
    currency: str
    status: InvoiceStatus


def registration_fee_from(invoice: Invoice) -> RegistrationFee:
    return RegistrationFee(
        invoice_id=invoice.id,
        amount=invoice.amount,
        currency=invoice.currency,
        status=invoice.status,
    )
