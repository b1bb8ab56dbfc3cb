"""
Domain models for priced usage.
"""

from datetime import date
from decimal import Decimal
from typing import Dict
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.money import Money


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineItem(_Camel):
    count: int
    rate: Money
    amount: Money


class StorageLineItem(_Camel):
    bytes: int
    gigabytes: Decimal  # 4 dp, informational
    rate: Money
    amount: Money


class BillingBreakdown(_Camel):
    """
    Priced usage for one period.

    Each line item is rounded to cents independently and ``total_amount`` is
    the sum of the rounded items.
    """

    period_start: date
    period_end: date
    urls: LineItem
    files: LineItem
    storage: StorageLineItem
    features: Dict[str, LineItem] = Field(default_factory=dict)
    total_amount: Money
