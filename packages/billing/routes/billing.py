"""
Billing API routes.

Enterprise-only endpoints for usage, pricing and invoices. The router is
mounted with the enterprise dependency, so every handler can assume an
enterprise account.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from packages.auth.dependencies import get_enterprise_account
from packages.auth.models.domain.identity import AccountIdentity
from packages.billing.periods import (
    format_month,
    parse_month,
    period_start_for,
    previous_period_start,
)
from packages.billing.services.billing_service import BillingService
from packages.billing.services.usage_service import UsageService
from packages.billing.models.schemas.billing import (
    BillingCalculationResponse,
    GenerateInvoiceRequest,
    InvoiceListResponse,
    InvoiceResponse,
    PayInvoiceRequest,
    UsageResponse,
)

router = APIRouter()


def get_billing_service() -> BillingService:
    return BillingService()


def get_usage_service() -> UsageService:
    return UsageService()


# ============================================================================
# Usage
# ============================================================================


@router.get("/usage", response_model=UsageResponse)
async def get_current_usage(
    account: AccountIdentity = Depends(get_enterprise_account),
    usage_service: UsageService = Depends(get_usage_service),
):
    """Counters for the current calendar month."""
    period_start = usage_service.current_period()
    snapshot = await usage_service.get_snapshot(account.user_id, period_start)
    return UsageResponse.from_snapshot(period_start, snapshot)


@router.get("/calculate", response_model=BillingCalculationResponse)
async def calculate_bill(
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    account: AccountIdentity = Depends(get_enterprise_account),
    billing_service: BillingService = Depends(get_billing_service),
):
    """Price a month's usage without issuing an invoice."""
    period_start = parse_month(month) if month else period_start_for(billing_service.clock())
    breakdown = await billing_service.calculate(account.user_id, period_start)
    return BillingCalculationResponse(period=format_month(period_start), breakdown=breakdown)


# ============================================================================
# Invoices
# ============================================================================


@router.post("/generate-invoice", response_model=InvoiceResponse, status_code=201)
async def generate_invoice(
    request: Optional[GenerateInvoiceRequest] = None,
    account: AccountIdentity = Depends(get_enterprise_account),
    billing_service: BillingService = Depends(get_billing_service),
):
    """
    Issue the usage invoice for a month.

    Defaults to the previous calendar month. Fails with 404 when nothing was
    metered and 409 when the month is already invoiced.
    """
    if request is not None and request.month:
        period_start = parse_month(request.month)
    else:
        period_start = previous_period_start(period_start_for(billing_service.clock()))

    invoice = await billing_service.generate_invoice(account.user_id, period_start)
    return InvoiceResponse.from_domain(invoice)


@router.get("/invoices", response_model=InvoiceListResponse)
async def list_invoices(
    account: AccountIdentity = Depends(get_enterprise_account),
    billing_service: BillingService = Depends(get_billing_service),
):
    """All invoices for the account, newest first."""
    invoices = await billing_service.list_invoices(account.user_id)
    return InvoiceListResponse(
        invoices=[InvoiceResponse.from_domain(invoice) for invoice in invoices]
    )


@router.post("/invoices/{invoice_id}/pay", response_model=InvoiceResponse)
async def pay_invoice(
    invoice_id: int,
    request: PayInvoiceRequest,
    account: AccountIdentity = Depends(get_enterprise_account),
    billing_service: BillingService = Depends(get_billing_service),
):
    """Record a payment made outside the service."""
    invoice = await billing_service.mark_paid(
        account.user_id,
        invoice_id,
        request.payment_reference,
        request.payment_method,
    )
    return InvoiceResponse.from_domain(invoice)
