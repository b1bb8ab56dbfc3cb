"""
Subscription API routes.

Purchase, switch and cancel for the authenticated account.
"""

from fastapi import APIRouter, Depends

from packages.auth.dependencies import get_current_account
from packages.auth.models.domain.identity import AccountIdentity
from packages.billing.services.subscription_service import SubscriptionService
from packages.billing.models.schemas.billing import (
    PurchaseRequest,
    SwitchPlanRequest,
    SubscriptionResponse,
)

router = APIRouter()


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


@router.post("/purchase", response_model=SubscriptionResponse, status_code=201)
async def purchase_plan(
    request: PurchaseRequest,
    account: AccountIdentity = Depends(get_current_account),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Subscribe to a plan.

    Fails with 409 when the account already has an active subscription;
    use the switch endpoint instead.
    """
    result = await subscription_service.purchase(account.user_id, request.plan_id)
    return SubscriptionResponse.from_domain(result)


@router.put("/switch", response_model=SubscriptionResponse)
async def switch_plan(
    request: SwitchPlanRequest,
    account: AccountIdentity = Depends(get_current_account),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Move the active subscription to another plan."""
    result = await subscription_service.switch_plan(account.user_id, request.new_plan_id)
    return SubscriptionResponse.from_domain(result)


@router.delete("/cancel", response_model=SubscriptionResponse)
async def cancel_subscription(
    account: AccountIdentity = Depends(get_current_account),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel the active subscription. Only enterprise plans can be cancelled."""
    result = await subscription_service.cancel(account.user_id)
    return SubscriptionResponse.from_domain(result)
