"""
Domain models for quota decisions.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class QuotaUsage(BaseModel):
    """
    Usage behind a quota decision.

    ``limit`` and ``remaining`` are None for unlimited plans.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None

    def after_creation(self) -> "QuotaUsage":
        """Usage once the link this decision allowed has been created."""
        used = self.used + 1
        if self.limit is None:
            return QuotaUsage(used=used)
        return QuotaUsage(used=used, limit=self.limit, remaining=max(self.limit - used, 0))


class QuotaDecision(BaseModel):
    """Result of evaluating whether an identity may create another link."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    allowed: bool
    reason: Optional[str] = None  # quota_exceeded, no_active_plan
    plan_id: Optional[int] = None
    plan_name: Optional[str] = None
    is_unlimited: bool = False
    usage: QuotaUsage
