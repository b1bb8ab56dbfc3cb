from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import select, update

from common.repositories.base import BaseRepository
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User
from packages.users.models.domain.enums import AccountStatus
from common.core.otel_axiom_exporter import trace_span


class UserRepository(BaseRepository[UserEntity, User]):
    def __init__(self):
        super().__init__(UserEntity, User)

    @trace_span
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get individual account by email (case-insensitive)."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserEntity).where(UserEntity.email == email.lower())
            )
            db_user = result.scalar_one_or_none()
            return self._entity_to_domain(db_user) if db_user else None

    @trace_span
    async def get_by_organization_name(self, organization_name: str) -> Optional[User]:
        async with self._get_session() as session:
            result = await session.execute(
                select(UserEntity).where(
                    UserEntity.organization_name == organization_name
                )
            )
            db_user = result.scalar_one_or_none()
            return self._entity_to_domain(db_user) if db_user else None

    @trace_span
    async def set_status(self, user_id: int, status: AccountStatus) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(UserEntity)
                .where(UserEntity.id == user_id)
                .values(account_status=status.value)
            )

    @trace_span
    async def update_last_login(self, user_id: int) -> None:
        """Update user's last login timestamp."""
        async with self._get_session() as session:
            await session.execute(
                update(UserEntity)
                .where(UserEntity.id == user_id)
                .values(last_login_at=datetime.now(timezone.utc))
            )
