from typing import Annotated, Optional
from fastapi import Depends, Header, Request

from common.core.exceptions import UnauthorizedError, ForbiddenError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.models.domain.identity import (
    AnonymousIdentity,
    AccountIdentity,
    Identity,
)
from packages.auth.services.token_service import TokenService

logger = get_logger(__name__)


def get_token_service() -> TokenService:
    """Get TokenService instance."""
    return TokenService()


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@trace_span
async def get_identity(
    request: Request,
    authorization: Annotated[Optional[str], Header()] = None,
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Resolve the caller.

    A valid bearer token gives an AccountIdentity. A missing or unknown token
    falls back to an AnonymousIdentity keyed by client IP.
    """
    token = _bearer_token(authorization)
    if token:
        identity = await token_service.resolve(token)
        if identity is not None:
            return identity
        logger.info("Unknown bearer token, treating caller as anonymous")

    return AnonymousIdentity(ip=get_client_ip(request))


@trace_span
async def get_current_account(
    identity: Identity = Depends(get_identity),
) -> AccountIdentity:
    """Require an authenticated account."""
    if not isinstance(identity, AccountIdentity):
        raise UnauthorizedError("Authentication required")
    return identity


@trace_span
async def get_enterprise_account(
    account: AccountIdentity = Depends(get_current_account),
) -> AccountIdentity:
    """Require an enterprise account."""
    if not account.is_enterprise:
        raise ForbiddenError("This endpoint is only available to enterprise accounts")
    return account
