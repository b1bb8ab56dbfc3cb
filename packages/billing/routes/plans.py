"""
Plans API routes.

Public endpoint for retrieving available subscription plans.
"""

from fastapi import APIRouter

from packages.billing.services.plans_service import PlansService
from packages.billing.models.schemas.billing import PlansResponse, PlanSummary

router = APIRouter()


@router.get("", response_model=PlansResponse)
async def get_plans():
    """
    Get all active subscription plans, cheapest first.

    The catalogue is cached for an hour. This endpoint is public for pricing pages.
    """
    plans_service = PlansService()
    plans = await plans_service.get_active_plans()
    return PlansResponse(plans=[PlanSummary.model_validate(plan) for plan in plans])
