"""
Domain models for invoices.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel

from packages.billing.models.domain.enums import InvoiceStatus, InvoiceType
from packages.billing.models.domain.money import Money


class Invoice(BaseModel):
    id: int
    user_id: int
    invoice_type: InvoiceType
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    amount: Money
    currency: str
    status: InvoiceStatus
    usage_snapshot: Optional[Dict[str, Any]] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceCreateModel(BaseModel):
    user_id: int
    invoice_type: InvoiceType
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    amount: Money
    currency: str
    status: InvoiceStatus = InvoiceStatus.PENDING
    usage_snapshot: Optional[Dict[str, Any]] = None


class InvoiceUpdateModel(BaseModel):
    status: Optional[InvoiceStatus] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_method: Optional[str] = None
