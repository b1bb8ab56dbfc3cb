"""
Domain models for usage metering.
"""

from datetime import date
from typing import Dict
from pydantic import BaseModel, Field


class UsageSnapshot(BaseModel):
    """Counters for one user and period, features keyed by name."""

    user_id: int
    period_start: date
    resources_created: int = 0
    files_uploaded: int = 0
    storage_bytes: int = 0
    features: Dict[str, int] = Field(default_factory=dict)

    class Config:
        from_attributes = True
