"""
Account API routes.

Registration, sign-in and enterprise activation are public. ``/me`` needs a
bearer token.
"""

from fastapi import APIRouter, Depends, Request

from common.core.config import settings
from common.providers.rate_limiter.limiter import limiter
from packages.auth.dependencies import get_current_account
from packages.auth.models.domain.identity import AccountIdentity
from packages.billing.models.schemas.billing import (
    SubscriptionResponse,
    registration_fee_from,
)
from packages.users.models.domain.user import AuthenticatedAccount
from packages.users.models.schemas.user import (
    AuthResponse,
    EnterpriseActivateRequest,
    EnterpriseActivateResponse,
    EnterpriseLoginRequest,
    EnterpriseRegisterRequest,
    EnterpriseRegisterResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UserResponse,
)
from packages.users.services.account_service import AccountService

router = APIRouter()


def get_account_service() -> AccountService:
    return AccountService()


def _auth_response(account: AuthenticatedAccount) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(account.user),
        token=account.token,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(settings.rate_limit_create)
async def register(
    request: Request,
    body: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
):
    """Create an individual account with the free plan."""
    account = await account_service.register(body.email, body.password)
    return _auth_response(account)


@router.post(
    "/register/enterprise", response_model=EnterpriseRegisterResponse, status_code=201
)
@limiter.limit(settings.rate_limit_create)
async def register_enterprise(
    request: Request,
    body: EnterpriseRegisterRequest,
    account_service: AccountService = Depends(get_account_service),
):
    """
    Create an enterprise account.

    The account stays in pending_payment until the registration fee is paid
    and the account is activated.
    """
    account, fee = await account_service.register_enterprise(body)
    return EnterpriseRegisterResponse(
        message=(
            f"Enterprise account created. Pay the {fee.amount} {fee.currency} "
            "registration fee to activate it."
        ),
        user=UserResponse.model_validate(account.user),
        token=account.token,
        registration_fee=registration_fee_from(fee),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.rate_limit_create)
async def login(
    request: Request,
    body: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
):
    account = await account_service.login(body.email, body.password)
    return _auth_response(account)


@router.post("/login/enterprise", response_model=AuthResponse)
@limiter.limit(settings.rate_limit_create)
async def login_enterprise(
    request: Request,
    body: EnterpriseLoginRequest,
    account_service: AccountService = Depends(get_account_service),
):
    """Sign in an enterprise account. Pending or suspended accounts get 403."""
    account = await account_service.login_enterprise(
        body.organization_name, body.password
    )
    return _auth_response(account)


@router.post("/enterprise/activate", response_model=EnterpriseActivateResponse)
async def activate_enterprise(
    body: EnterpriseActivateRequest,
    account_service: AccountService = Depends(get_account_service),
):
    """Activate an enterprise account once its registration fee is paid."""
    user, subscription = await account_service.activate_enterprise(
        body.user_id, body.payment_reference
    )
    return EnterpriseActivateResponse(
        message="Enterprise account activated",
        user=UserResponse.model_validate(user),
        subscription=SubscriptionResponse.from_domain(subscription),
    )


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    account: AccountIdentity = Depends(get_current_account),
    account_service: AccountService = Depends(get_account_service),
):
    """The caller's account and active subscription."""
    user, subscription = await account_service.profile(account.user_id)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        subscription=SubscriptionResponse.from_domain(subscription)
        if subscription
        else None,
    )
