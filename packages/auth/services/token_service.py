from typing import Optional

from common.core.security import generate_access_token, hash_token
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.models.domain.access_token import AccessTokenCreateModel
from packages.auth.models.domain.identity import AccountIdentity
from packages.auth.repositories.access_token_repository import AccessTokenRepository

logger = get_logger(__name__)


class TokenService:
    """Issues and resolves opaque bearer tokens."""

    def __init__(self):
        self.token_repo = AccessTokenRepository()

    @trace_span
    async def issue(self, user_id: int) -> str:
        """Create a token for ``user_id``. The plain token is only returned here."""
        token = generate_access_token()
        await self.token_repo.create(
            AccessTokenCreateModel(user_id=user_id, token_hash=hash_token(token))
        )
        logger.info(f"Issued access token for user {user_id}", extra={"user_id": user_id})
        return token

    @trace_span
    async def resolve(self, token: str) -> Optional[AccountIdentity]:
        """Identity behind a bearer token, or None if the token is unknown."""
        found = await self.token_repo.get_user_by_token_hash(hash_token(token))
        if found is None:
            return None
        access_token, user = found
        await self.token_repo.touch(access_token.id)
        return AccountIdentity(
            user_id=user.id,
            account_class=user.account_class,
            account_status=user.account_status,
        )
