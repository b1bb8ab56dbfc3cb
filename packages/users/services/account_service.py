"""
Account registration and sign-in.

Individuals are active from registration with the free plan. Enterprise
accounts start in pending_payment with a registration fee invoice and a
pending enterprise subscription, and become active through ``activate``.
"""

from typing import Optional, Tuple

from common.core.clock import Clock, utc_now
from common.core.config import settings
from common.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.security import hash_password, verify_password
from common.db.context import transactional
from common.repositories.base import unique_conflict
from packages.auth.services.token_service import TokenService
from packages.billing.models.domain.invoice import Invoice
from packages.billing.models.domain.subscription import SubscriptionWithPlan
from packages.billing.services.billing_service import BillingService
from packages.billing.services.subscription_service import SubscriptionService
from packages.users.models.domain.enums import AccountClass, AccountStatus
from packages.users.models.domain.user import AuthenticatedAccount, User, UserCreateModel
from packages.users.models.schemas.user import EnterpriseRegisterRequest
from packages.users.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class AccountService:
    """Service for account lifecycle operations."""

    def __init__(self, clock: Clock = utc_now):
        self.user_repo = UserRepository()
        self.token_service = TokenService()
        self.subscription_service = SubscriptionService(clock=clock)
        self.billing_service = BillingService(clock=clock)

    @trace_span
    @transactional
    async def register(self, email: str, password: str) -> AuthenticatedAccount:
        """Create an individual account on the free plan."""
        email = email.lower()
        if await self.user_repo.get_by_email(email):
            raise ConflictError("User with this email already exists")

        with unique_conflict("User with this email already exists"):
            user = await self.user_repo.create(
                UserCreateModel(
                    email=email,
                    password_hash=hash_password(password),
                    account_class=AccountClass.INDIVIDUAL,
                    account_status=AccountStatus.ACTIVE,
                )
            )
        await self.subscription_service.assign_initial_plan(user.id, settings.free_plan_name)
        token = await self.token_service.issue(user.id)

        logger.info(f"Registered user {user.id}", extra={"user_id": user.id})
        return AuthenticatedAccount(user=user, token=token)

    @trace_span
    @transactional
    async def register_enterprise(
        self, request: EnterpriseRegisterRequest
    ) -> Tuple[AuthenticatedAccount, Invoice]:
        """
        Create an enterprise account awaiting its registration fee.

        Account, fee invoice and pending subscription are created together or
        not at all.
        """
        if await self.user_repo.get_by_organization_name(request.organization_name):
            raise ConflictError("Organization name already registered")

        with unique_conflict("Organization name already registered"):
            user = await self.user_repo.create(
                UserCreateModel(
                    organization_name=request.organization_name,
                    password_hash=hash_password(request.password),
                    account_class=AccountClass.ENTERPRISE,
                    account_status=AccountStatus.PENDING_PAYMENT,
                    website=str(request.website),
                    logo_url=str(request.logo_url) if request.logo_url else None,
                    primary_color=request.primary_color,
                    secondary_color=request.secondary_color,
                )
            )
        fee = await self.billing_service.issue_registration_fee(user.id)
        await self.subscription_service.assign_initial_plan(
            user.id, settings.enterprise_plan_name
        )
        token = await self.token_service.issue(user.id)

        logger.info(
            f"Registered enterprise {user.organization_name} ({user.id}), awaiting fee",
            extra={"user_id": user.id, "invoice_id": fee.id},
        )
        return AuthenticatedAccount(user=user, token=token), fee

    async def _sign_in(self, user: User) -> AuthenticatedAccount:
        await self.user_repo.update_last_login(user.id)
        token = await self.token_service.issue(user.id)
        return AuthenticatedAccount(user=user, token=token)

    @trace_span
    @transactional
    async def login(self, email: str, password: str) -> AuthenticatedAccount:
        user = await self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.account_status.can_sign_in():
            raise ForbiddenError("Account is suspended", status=user.account_status.value)
        return await self._sign_in(user)

    @trace_span
    @transactional
    async def login_enterprise(
        self, organization_name: str, password: str
    ) -> AuthenticatedAccount:
        user = await self.user_repo.get_by_organization_name(organization_name)
        if (
            user is None
            or user.account_class != AccountClass.ENTERPRISE
            or not verify_password(password, user.password_hash)
        ):
            raise UnauthorizedError("Invalid organization name or password")

        if user.account_status == AccountStatus.PENDING_PAYMENT:
            raise ForbiddenError(
                "Please complete the registration fee payment to activate your account.",
                status=user.account_status.value,
            )
        if not user.account_status.can_sign_in():
            raise ForbiddenError("Account is suspended", status=user.account_status.value)

        return await self._sign_in(user)

    @trace_span
    async def activate_enterprise(
        self, user_id: int, payment_reference: str
    ) -> Tuple[User, SubscriptionWithPlan]:
        subscription = await self.subscription_service.activate(user_id, payment_reference)
        user = await self.user_repo.get(user_id)
        return user, subscription

    @trace_span
    async def profile(self, user_id: int) -> Tuple[User, Optional[SubscriptionWithPlan]]:
        user = await self.user_repo.get(user_id)
        if user is None:
            raise NotFoundError("User not found", user_id=user_id)
        subscription = await self.subscription_service.get_active_with_plan(user_id)
        return user, subscription
