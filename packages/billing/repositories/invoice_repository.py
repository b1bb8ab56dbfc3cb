"""
Repository for invoices.
"""

from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from packages.billing.models.database.invoice import InvoiceEntity
from packages.billing.models.domain.invoice import Invoice, InvoiceUpdateModel
from packages.billing.models.domain.enums import InvoiceStatus, InvoiceType
from common.core.otel_axiom_exporter import trace_span


class InvoiceRepository(BaseRepository[InvoiceEntity, Invoice]):
    def __init__(self):
        super().__init__(InvoiceEntity, Invoice)

    @trace_span
    async def get_for_user(self, user_id: int, invoice_id: int) -> Optional[Invoice]:
        """Invoice by id, only if it belongs to ``user_id``."""
        async with self._get_session() as session:
            result = await session.execute(
                select(InvoiceEntity).where(
                    InvoiceEntity.id == invoice_id, InvoiceEntity.user_id == user_id
                )
            )
            db_invoice = result.scalar_one_or_none()
            return self._entity_to_domain(db_invoice) if db_invoice else None

    @trace_span
    async def list_for_user(self, user_id: int) -> List[Invoice]:
        """All invoices of a user, newest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(InvoiceEntity)
                .where(InvoiceEntity.user_id == user_id)
                .order_by(InvoiceEntity.created_at.desc(), InvoiceEntity.id.desc())
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def get_open_monthly(
        self, user_id: int, period_start: date
    ) -> Optional[Invoice]:
        """Non-cancelled monthly usage invoice for the period, if one was issued."""
        async with self._get_session() as session:
            result = await session.execute(
                select(InvoiceEntity)
                .where(
                    InvoiceEntity.user_id == user_id,
                    InvoiceEntity.invoice_type == InvoiceType.MONTHLY_USAGE.value,
                    InvoiceEntity.period_start == period_start,
                    InvoiceEntity.status != InvoiceStatus.CANCELLED.value,
                )
                .limit(1)
            )
            db_invoice = result.scalar_one_or_none()
            return self._entity_to_domain(db_invoice) if db_invoice else None

    @trace_span
    async def get_pending_registration_fee(self, user_id: int) -> Optional[Invoice]:
        async with self._get_session() as session:
            result = await session.execute(
                select(InvoiceEntity)
                .where(
                    InvoiceEntity.user_id == user_id,
                    InvoiceEntity.invoice_type == InvoiceType.REGISTRATION_FEE.value,
                    InvoiceEntity.status == InvoiceStatus.PENDING.value,
                )
                .order_by(InvoiceEntity.id.desc())
                .limit(1)
            )
            db_invoice = result.scalar_one_or_none()
            return self._entity_to_domain(db_invoice) if db_invoice else None

    @trace_span
    async def update_if_status(
        self,
        invoice_id: int,
        expected: Iterable[InvoiceStatus],
        update_model: InvoiceUpdateModel,
    ) -> Optional[Invoice]:
        """
        Apply ``update_model`` only while the invoice is in one of ``expected``.

        The status check and the write are one UPDATE, so two callers racing
        on the same invoice cannot both succeed. Returns None when no row
        matched because the invoice has moved on since it was read.
        """
        data = self._to_row(update_model.model_dump(exclude_unset=True))
        async with self._get_session() as session:
            result = await session.execute(
                update(InvoiceEntity)
                .where(
                    InvoiceEntity.id == invoice_id,
                    InvoiceEntity.status.in_([status.value for status in expected]),
                )
                .values(**data)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
            await session.flush()
            db_invoice = await session.get(
                InvoiceEntity, invoice_id, populate_existing=True
            )
            return self._entity_to_domain(db_invoice)
