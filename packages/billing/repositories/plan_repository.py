"""
Repository for the plan catalogue.
"""

from typing import List, Optional
from sqlalchemy import select

from common.repositories.base import BaseRepository
from packages.billing.models.database.plan import PlanEntity
from packages.billing.models.domain.plan import Plan
from common.core.otel_axiom_exporter import trace_span


class PlanRepository(BaseRepository[PlanEntity, Plan]):
    def __init__(self):
        super().__init__(PlanEntity, Plan)

    @trace_span
    async def get_by_name(self, name: str) -> Optional[Plan]:
        async with self._get_session() as session:
            result = await session.execute(
                select(PlanEntity).where(PlanEntity.name == name)
            )
            db_plan = result.scalar_one_or_none()
            return self._entity_to_domain(db_plan) if db_plan else None

    @trace_span
    async def get_active_plans(self) -> List[Plan]:
        """Active plans, cheapest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(PlanEntity)
                .where(PlanEntity.is_active == True)  # noqa
                .order_by(PlanEntity.price.asc(), PlanEntity.id.asc())
            )
            return self._entities_to_domain(result.scalars().all())
