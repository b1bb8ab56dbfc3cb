"""
Repository for monthly usage counters.

Every write is a single ``INSERT ... ON CONFLICT DO UPDATE`` that adds to the
stored counters, so concurrent increments for the same user and period never
lose updates.
"""

from datetime import date
from typing import Dict, Optional
from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite

from common.repositories.base import BaseRepository
from packages.billing.models.database.usage import (
    UsagePeriodEntity,
    UsageFeatureCounterEntity,
)
from packages.billing.models.domain.usage import UsageSnapshot
from common.core.otel_axiom_exporter import trace_span, get_logger

logger = get_logger(__name__)


def _dialect_insert(session):
    if session.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


class UsageRepository(BaseRepository[UsagePeriodEntity, UsageSnapshot]):
    def __init__(self):
        super().__init__(UsagePeriodEntity, UsageSnapshot)

    @trace_span
    async def add_to_period(
        self,
        user_id: int,
        period_start: date,
        resources_created: int = 0,
        files_uploaded: int = 0,
        storage_bytes: int = 0,
    ) -> None:
        """Add deltas to the period counters, creating the row when missing."""
        async with self._get_session() as session:
            insert = _dialect_insert(session)
            stmt = insert(UsagePeriodEntity).values(
                user_id=user_id,
                period_start=period_start,
                resources_created=resources_created,
                files_uploaded=files_uploaded,
                storage_bytes=storage_bytes,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "period_start"],
                set_={
                    "resources_created": UsagePeriodEntity.resources_created
                    + stmt.excluded.resources_created,
                    "files_uploaded": UsagePeriodEntity.files_uploaded
                    + stmt.excluded.files_uploaded,
                    "storage_bytes": UsagePeriodEntity.storage_bytes
                    + stmt.excluded.storage_bytes,
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)

    @trace_span
    async def add_feature_activation(
        self, user_id: int, period_start: date, feature_name: str, amount: int = 1
    ) -> None:
        async with self._get_session() as session:
            insert = _dialect_insert(session)
            stmt = insert(UsageFeatureCounterEntity).values(
                user_id=user_id,
                period_start=period_start,
                feature_name=feature_name,
                activations=amount,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "period_start", "feature_name"],
                set_={
                    "activations": UsageFeatureCounterEntity.activations
                    + stmt.excluded.activations,
                    "updated_at": func.now(),
                },
            )
            await session.execute(stmt)

    @trace_span
    async def ensure_period(self, user_id: int, period_start: date) -> None:
        """Insert an all-zero record unless one exists."""
        async with self._get_session() as session:
            insert = _dialect_insert(session)
            stmt = (
                insert(UsagePeriodEntity)
                .values(user_id=user_id, period_start=period_start)
                .on_conflict_do_nothing(index_elements=["user_id", "period_start"])
            )
            await session.execute(stmt)

    @trace_span
    async def get_snapshot(
        self, user_id: int, period_start: date
    ) -> Optional[UsageSnapshot]:
        """Counters and feature activations for one period, or None if never metered."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UsagePeriodEntity).where(
                    UsagePeriodEntity.user_id == user_id,
                    UsagePeriodEntity.period_start == period_start,
                )
            )
            record = result.scalar_one_or_none()

            feature_rows = await session.execute(
                select(
                    UsageFeatureCounterEntity.feature_name,
                    UsageFeatureCounterEntity.activations,
                ).where(
                    UsageFeatureCounterEntity.user_id == user_id,
                    UsageFeatureCounterEntity.period_start == period_start,
                )
            )
            features: Dict[str, int] = {
                name: activations for name, activations in feature_rows.all()
            }

        if record is None and not features:
            return None

        return UsageSnapshot(
            user_id=user_id,
            period_start=period_start,
            resources_created=record.resources_created if record else 0,
            files_uploaded=record.files_uploaded if record else 0,
            storage_bytes=record.storage_bytes if record else 0,
            features=features,
        )
