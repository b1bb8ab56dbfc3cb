"""
Unit tests for caller identity resolution.
"""

from types import SimpleNamespace

import pytest

from common.core.exceptions import ForbiddenError, UnauthorizedError
from packages.auth.dependencies import (
    _bearer_token,
    get_client_ip,
    get_current_account,
    get_enterprise_account,
    get_identity,
)
from packages.auth.models.domain.identity import AccountIdentity, AnonymousIdentity
from packages.auth.services.token_service import TokenService
from packages.users.models.domain.enums import AccountClass, AccountStatus


def _request(headers=None, host="10.0.0.5"):
    return SimpleNamespace(
        headers=headers or {},
        client=SimpleNamespace(host=host) if host else None,
    )


class TestClientIp:
    def test_first_forwarded_hop(self):
        request = _request({"x-forwarded-for": "1.2.3.4, 10.0.0.1, 10.0.0.2"})

        assert get_client_ip(request) == "1.2.3.4"

    def test_falls_back_to_peer(self):
        assert get_client_ip(_request()) == "10.0.0.5"

    def test_blank_forwarded_header(self):
        assert get_client_ip(_request({"x-forwarded-for": " , 10.0.0.1"})) == "10.0.0.5"

    def test_no_peer(self):
        assert get_client_ip(_request(host=None)) == "unknown"


class TestBearerToken:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer lm_abc", "lm_abc"),
            ("bearer   lm_abc  ", "lm_abc"),
            ("Basic dXNlcjpwYXNz", None),
            ("Bearer ", None),
            (None, None),
            ("", None),
        ],
    )
    def test_parsing(self, header, expected):
        assert _bearer_token(header) == expected


@pytest.mark.asyncio
class TestIdentity:
    async def test_valid_token(self, individual_account):
        identity = await get_identity(
            _request(),
            authorization=f"Bearer {individual_account.token}",
            token_service=TokenService(),
        )

        assert isinstance(identity, AccountIdentity)
        assert identity.user_id == individual_account.user.id

    async def test_unknown_token_is_anonymous(self):
        identity = await get_identity(
            _request({"x-forwarded-for": "1.2.3.4"}),
            authorization="Bearer lm_" + "f" * 64,
            token_service=TokenService(),
        )

        assert identity == AnonymousIdentity(ip="1.2.3.4")

    async def test_no_header_is_anonymous(self):
        identity = await get_identity(
            _request(), authorization=None, token_service=TokenService()
        )

        assert identity.owner_key == "ip:10.0.0.5"

    async def test_current_account_rejects_anonymous(self):
        with pytest.raises(UnauthorizedError):
            await get_current_account(AnonymousIdentity(ip="1.2.3.4"))

    async def test_enterprise_only(self):
        individual = AccountIdentity(
            user_id=1,
            account_class=AccountClass.INDIVIDUAL,
            account_status=AccountStatus.ACTIVE,
        )
        enterprise = individual.model_copy(
            update={"account_class": AccountClass.ENTERPRISE}
        )

        with pytest.raises(ForbiddenError):
            await get_enterprise_account(individual)
        assert await get_enterprise_account(enterprise) is enterprise
