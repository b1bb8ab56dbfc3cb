"""
Unit tests for AccountService.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from common.core.exceptions import ConflictError, ForbiddenError, UnauthorizedError
from packages.auth.services.token_service import TokenService
from packages.billing.models.domain.enums import InvoiceStatus, InvoiceType, SubscriptionStatus
from packages.billing.services.subscription_service import SubscriptionService
from packages.users.models.domain.enums import AccountClass, AccountStatus
from packages.users.services.account_service import AccountService
from packages.users.models.schemas.user import EnterpriseRegisterRequest


@pytest.mark.asyncio
class TestRegister:
    async def test_individual_starts_active_on_free_plan(self, individual_account):
        user = individual_account.user

        assert user.email == "alice@example.com"
        assert user.account_class == AccountClass.INDIVIDUAL
        assert user.account_status == AccountStatus.ACTIVE
        assert user.password_hash != "secret123"

        subscription = await SubscriptionService().get_active_with_plan(user.id)
        assert subscription.plan.name == "free"

    async def test_token_resolves_to_account(self, individual_account):
        identity = await TokenService().resolve(individual_account.token)

        assert identity.user_id == individual_account.user.id
        assert identity.is_enterprise is False

    async def test_email_is_case_insensitive(self, individual_account):
        with pytest.raises(ConflictError):
            await AccountService().register("Alice@Example.com", "another1")

    async def test_enterprise_awaits_fee(self, pending_enterprise):
        account, fee = pending_enterprise

        assert account.user.account_class == AccountClass.ENTERPRISE
        assert account.user.account_status == AccountStatus.PENDING_PAYMENT
        assert account.user.organization_name == "Acme Corp"
        assert fee.invoice_type == InvoiceType.REGISTRATION_FEE
        assert fee.amount == Decimal("10.00")
        assert fee.status == InvoiceStatus.PENDING

        assert await SubscriptionService().get_active_with_plan(account.user.id) is None

    async def test_duplicate_organization(self, pending_enterprise):
        with pytest.raises(ConflictError):
            await AccountService().register_enterprise(
                EnterpriseRegisterRequest(
                    organization_name="Acme Corp",
                    password="another-secret",
                    website="https://acme.example.com",
                )
            )


@pytest.mark.asyncio
class TestLogin:
    async def test_login(self, individual_account):
        account = await AccountService().login("alice@example.com", "secret123")

        assert account.user.id == individual_account.user.id
        assert account.token != individual_account.token

    async def test_wrong_password(self, individual_account):
        with pytest.raises(UnauthorizedError):
            await AccountService().login("alice@example.com", "wrong-password")

    async def test_unknown_email(self):
        with pytest.raises(UnauthorizedError):
            await AccountService().login("nobody@example.com", "secret123")

    async def test_pending_enterprise_cannot_sign_in(self, pending_enterprise):
        with pytest.raises(ForbiddenError) as exc_info:
            await AccountService().login_enterprise("Acme Corp", "enterprise-secret")

        assert exc_info.value.context["status"] == "pending_payment"

    async def test_enterprise_sign_in_after_activation(self, enterprise_account):
        account = await AccountService().login_enterprise(
            "Acme Corp", "enterprise-secret"
        )

        assert account.user.account_status == AccountStatus.ACTIVE

    async def test_enterprise_wrong_password(self, enterprise_account):
        with pytest.raises(UnauthorizedError):
            await AccountService().login_enterprise("Acme Corp", "not-it")


@pytest.mark.asyncio
class TestActivation:
    async def test_activation_starts_subscription(self, pending_enterprise):
        account, _ = pending_enterprise

        user, subscription = await AccountService().activate_enterprise(
            account.user.id, "pay_ref_999"
        )

        assert user.account_status == AccountStatus.ACTIVE
        assert subscription.subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.plan.name == "enterprise"

    async def test_profile(self, enterprise_account):
        user, subscription = await AccountService().profile(enterprise_account.user.id)

        assert user.organization_name == "Acme Corp"
        assert subscription.plan.is_unlimited


@pytest.mark.asyncio
class TestRegistrationRace:
    async def test_email_taken_after_check(self, individual_account):
        service = AccountService()

        with patch.object(service.user_repo, "get_by_email", AsyncMock(return_value=None)):
            with pytest.raises(ConflictError):
                await service.register("alice@example.com", "another1")

    async def test_organization_taken_after_check(self, pending_enterprise):
        service = AccountService()

        with patch.object(
            service.user_repo, "get_by_organization_name", AsyncMock(return_value=None)
        ):
            with pytest.raises(ConflictError):
                await service.register_enterprise(
                    EnterpriseRegisterRequest(
                        organization_name="Acme Corp",
                        password="another-secret",
                        website="https://acme.example.com",
                    )
                )
