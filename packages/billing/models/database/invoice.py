"""
Database entity for invoices.
"""

from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Index, JSON, Numeric, text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType

OPEN_MONTHLY_INVOICE = "invoice_type = 'monthly_usage' AND status <> 'cancelled'"


class InvoiceEntity(Base):
    """
    Invoice database entity.

    ``usage_snapshot`` freezes the priced breakdown at issuance, so later rate
    changes never alter an issued invoice.
    """

    __tablename__ = "invoices"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    invoice_type = Column(String(50), nullable=False)  # registration_fee, monthly_usage
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default="USD")
    status = Column(String(50), nullable=False, index=True)

    usage_snapshot = Column(JSON, nullable=True)

    payment_date = Column(DateTime(timezone=True), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    payment_method = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_invoice_user_type_period", "user_id", "invoice_type", "period_start"),
        # One live monthly invoice per user and period; cancelled ones may be reissued
        Index(
            "uq_invoices_open_monthly_period",
            "user_id",
            "period_start",
            unique=True,
            postgresql_where=text(OPEN_MONTHLY_INVOICE),
            sqlite_where=text(OPEN_MONTHLY_INVOICE),
        ),
    )
