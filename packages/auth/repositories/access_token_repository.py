from datetime import datetime, timezone
from typing import Optional, Tuple
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from packages.auth.models.database.access_token import AccessTokenEntity
from packages.auth.models.domain.access_token import AccessToken
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User
from common.core.otel_axiom_exporter import trace_span


class AccessTokenRepository(BaseRepository[AccessTokenEntity, AccessToken]):
    def __init__(self):
        super().__init__(AccessTokenEntity, AccessToken)

    @trace_span
    async def get_user_by_token_hash(
        self, token_hash: str
    ) -> Optional[Tuple[AccessToken, User]]:
        """Token row and its owning account, or None for an unknown token."""
        async with self._get_session() as session:
            result = await session.execute(
                select(AccessTokenEntity, UserEntity)
                .join(UserEntity, UserEntity.id == AccessTokenEntity.user_id)
                .where(AccessTokenEntity.token_hash == token_hash)
            )
            row = result.one_or_none()
            if row is None:
                return None
            token, user = row
            return self._entity_to_domain(token), User.model_validate(user)

    @trace_span
    async def touch(self, token_id: int) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(AccessTokenEntity)
                .where(AccessTokenEntity.id == token_id)
                .values(last_used_at=datetime.now(timezone.utc))
            )
