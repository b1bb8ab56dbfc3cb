"""
Usage pricing and invoicing for enterprise accounts.

Prices come from a fixed rate table. Every line item is rounded to cents on
its own (ROUND_HALF_UP) and the total is the sum of the rounded items, so an
invoice always adds up line by line.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from common.core.clock import Clock, utc_now
from common.core.config import settings
from common.core.exceptions import ConflictError, NotFoundError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.repositories.base import unique_conflict
from packages.billing.models.domain.billing import (
    BillingBreakdown,
    LineItem,
    StorageLineItem,
)
from packages.billing.models.domain.enums import InvoiceStatus, InvoiceType
from packages.billing.models.domain.invoice import (
    Invoice,
    InvoiceCreateModel,
    InvoiceUpdateModel,
)
from packages.billing.models.domain.money import to_money
from packages.billing.models.domain.usage import UsageSnapshot
from packages.billing.periods import period_start_for, period_end_for
from packages.billing.repositories.invoice_repository import InvoiceRepository
from packages.billing.repositories.usage_repository import UsageRepository

logger = get_logger(__name__)

BYTES_PER_GB = Decimal(1024**3)
GB_PLACES = Decimal("0.0001")

URL_RATE = Decimal("0.10")
FILE_RATE = Decimal("0.05")
STORAGE_RATE_PER_GB = Decimal("0.01")
FEATURE_RATES: Dict[str, Decimal] = {
    "chatbot": Decimal("0.50"),
    "screenshot": Decimal("0.25"),
    "interest_form": Decimal("0.30"),
    "download_enable": Decimal("0.15"),
    "follow_up": Decimal("0.40"),
}

PAYABLE_STATUSES = frozenset(
    status for status in InvoiceStatus if status.can_transition_to(InvoiceStatus.PAID)
)


def _line(count: int, rate: Decimal) -> LineItem:
    return LineItem(count=count, rate=rate, amount=to_money(Decimal(count) * rate))


def price_usage(
    period_start: date,
    resources_created: int = 0,
    files_uploaded: int = 0,
    storage_bytes: int = 0,
    features: Optional[Dict[str, int]] = None,
) -> BillingBreakdown:
    """Price one period's counters. Unknown features are listed at rate 0."""
    urls = _line(resources_created, URL_RATE)
    files = _line(files_uploaded, FILE_RATE)

    gigabytes = Decimal(storage_bytes) / BYTES_PER_GB
    storage = StorageLineItem(
        bytes=storage_bytes,
        gigabytes=gigabytes.quantize(GB_PLACES, rounding=ROUND_HALF_UP),
        rate=STORAGE_RATE_PER_GB,
        amount=to_money(gigabytes * STORAGE_RATE_PER_GB),
    )

    feature_lines = {
        name: _line(count, FEATURE_RATES.get(name, Decimal("0")))
        for name, count in sorted((features or {}).items())
    }

    total = urls.amount + files.amount + storage.amount
    for item in feature_lines.values():
        total += item.amount

    return BillingBreakdown(
        period_start=period_start,
        period_end=period_end_for(period_start),
        urls=urls,
        files=files,
        storage=storage,
        features=feature_lines,
        total_amount=to_money(total),
    )


class BillingService:
    def __init__(self, clock: Clock = utc_now):
        self.clock = clock
        self.usage_repo = UsageRepository()
        self.invoice_repo = InvoiceRepository()

    def _breakdown_for(self, snapshot: UsageSnapshot) -> BillingBreakdown:
        return price_usage(
            snapshot.period_start,
            resources_created=snapshot.resources_created,
            files_uploaded=snapshot.files_uploaded,
            storage_bytes=snapshot.storage_bytes,
            features=snapshot.features,
        )

    @trace_span
    async def calculate(
        self, user_id: int, period_start: Optional[date] = None
    ) -> BillingBreakdown:
        """Priced usage for a period (current month by default). Zero when unmetered."""
        period_start = period_start or period_start_for(self.clock())
        snapshot = await self.usage_repo.get_snapshot(user_id, period_start)
        if snapshot is None:
            return price_usage(period_start)
        return self._breakdown_for(snapshot)

    @trace_span
    async def generate_invoice(self, user_id: int, period_start: date) -> Invoice:
        """
        Issue the monthly usage invoice for a period.

        Raises:
            NotFoundError: no usage was recorded for the period
            ConflictError: a non-cancelled invoice already exists for the period
        """
        snapshot = await self.usage_repo.get_snapshot(user_id, period_start)
        if snapshot is None:
            raise NotFoundError(
                "No usage recorded for this period",
                period_start=period_start.isoformat(),
            )

        existing = await self.invoice_repo.get_open_monthly(user_id, period_start)
        if existing is not None:
            raise ConflictError(
                "An invoice already exists for this period",
                invoice_id=existing.id,
                period_start=period_start.isoformat(),
            )

        breakdown = self._breakdown_for(snapshot)
        # A concurrent request can pass the check above too; the unique index decides
        with unique_conflict(
            "An invoice already exists for this period",
            period_start=period_start.isoformat(),
        ):
            invoice = await self.invoice_repo.create(
                InvoiceCreateModel(
                    user_id=user_id,
                    invoice_type=InvoiceType.MONTHLY_USAGE,
                    period_start=breakdown.period_start,
                    period_end=breakdown.period_end,
                    amount=breakdown.total_amount,
                    currency=settings.billing_currency,
                    status=InvoiceStatus.PENDING,
                    usage_snapshot=breakdown.model_dump(mode="json", by_alias=True),
                )
            )
        logger.info(
            f"Generated invoice {invoice.id} for user {user_id}",
            extra={
                "user_id": user_id,
                "invoice_id": invoice.id,
                "period_start": period_start.isoformat(),
                "amount": str(invoice.amount),
            },
        )
        return invoice

    @trace_span
    async def issue_registration_fee(self, user_id: int) -> Invoice:
        """Pending invoice for the one-time enterprise registration fee."""
        return await self.invoice_repo.create(
            InvoiceCreateModel(
                user_id=user_id,
                invoice_type=InvoiceType.REGISTRATION_FEE,
                amount=to_money(settings.registration_fee),
                currency=settings.billing_currency,
                status=InvoiceStatus.PENDING,
            )
        )

    @trace_span
    async def settle(
        self,
        invoice: Invoice,
        payment_reference: str,
        payment_method: Optional[str] = None,
    ) -> Invoice:
        """Move an invoice to paid. Illegal moves raise InvalidTransitionError."""
        if invoice.status == InvoiceStatus.PAID:
            raise ConflictError("Invoice is already paid", invoice_id=invoice.id)
        invoice.status.transition_to(InvoiceStatus.PAID)

        paid = await self.invoice_repo.update_if_status(
            invoice.id,
            PAYABLE_STATUSES,
            InvoiceUpdateModel(
                status=InvoiceStatus.PAID,
                payment_date=self.clock(),
                payment_reference=payment_reference,
                payment_method=payment_method,
            ),
        )
        if paid is None:
            # Paid or cancelled by someone else after ``invoice`` was read
            raise ConflictError("Invoice is no longer payable", invoice_id=invoice.id)
        logger.info(
            f"Invoice {invoice.id} paid",
            extra={"invoice_id": invoice.id, "payment_reference": payment_reference},
        )
        return paid

    @trace_span
    async def mark_paid(
        self,
        user_id: int,
        invoice_id: int,
        payment_reference: str,
        payment_method: Optional[str] = None,
    ) -> Invoice:
        invoice = await self.invoice_repo.get_for_user(user_id, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found", invoice_id=invoice_id)
        return await self.settle(invoice, payment_reference, payment_method)

    @trace_span
    async def list_invoices(self, user_id: int) -> List[Invoice]:
        return await self.invoice_repo.list_for_user(user_id)
