"""Service for retrieving plan information."""

from typing import List, Optional

from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.providers.caching.decorators import cache
from packages.billing.cache_keys import active_plans_key
from packages.billing.models.domain.plan import Plan
from packages.billing.repositories.plan_repository import PlanRepository

logger = get_logger(__name__)


class PlansService:
    """Plan catalogue lookups."""

    def __init__(self):
        self.plan_repo = PlanRepository()

    @trace_span
    @cache(model_type=Plan, ttl=3600, key_generator=active_plans_key)
    async def get_active_plans(self) -> List[Plan]:
        """Active plans by ascending price. Cached for an hour, plans rarely change."""
        return await self.plan_repo.get_active_plans()

    @trace_span
    async def get_plan(self, plan_id: int) -> Optional[Plan]:
        return await self.plan_repo.get(plan_id)

    @trace_span
    async def get_active_plan(self, plan_id: int) -> Plan:
        plan = await self.plan_repo.get(plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError("Plan not found", plan_id=plan_id)
        return plan

    @trace_span
    async def get_by_name(self, name: str) -> Optional[Plan]:
        return await self.plan_repo.get_by_name(name)

    @trace_span
    async def require_by_name(self, name: str) -> Plan:
        plan = await self.plan_repo.get_by_name(name)
        if plan is None:
            logger.error(f"Plan {name} missing from catalogue", extra={"plan": name})
            raise NotFoundError("Plan not found", plan=name)
        return plan
