from fastapi import APIRouter, Depends

from packages.auth.dependencies import get_current_account
from packages.auth.models.domain.identity import AccountIdentity
from packages.billing.models.schemas.billing import UserQuotaResponse
from packages.billing.services.quota_service import QuotaService

router = APIRouter()


@router.get("/quota", response_model=UserQuotaResponse)
async def get_user_quota(
    account: AccountIdentity = Depends(get_current_account),
):
    """Plan limits and live usage for the caller's active subscription."""
    quota_service = QuotaService()
    return await quota_service.quota_for_account(account.user_id)
