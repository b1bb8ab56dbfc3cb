"""
Domain models for plans.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from packages.billing.models.domain.money import Money


class Plan(BaseModel):
    id: int
    name: str
    display_name: str
    url_limit: Optional[int] = None  # None means unlimited
    price: Money
    file_size_limit_bytes: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_unlimited(self) -> bool:
        return self.url_limit is None
