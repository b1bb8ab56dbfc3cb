from datetime import date

import pytest
from sqlalchemy import func, select

from packages.billing.models.database.usage import UsagePeriodEntity
from packages.billing.repositories.usage_repository import UsageRepository

PERIOD = date(2025, 3, 1)


@pytest.mark.asyncio
class TestUsageRepository:
    async def test_upsert_adds_to_existing_row(self, individual_account, test_db):
        repo = UsageRepository()
        user_id = individual_account.user.id

        await repo.add_to_period(user_id, PERIOD, resources_created=1)
        await repo.add_to_period(user_id, PERIOD, files_uploaded=1, storage_bytes=10)
        await repo.add_to_period(user_id, PERIOD, resources_created=4, storage_bytes=5)

        rows = await test_db.execute(
            select(func.count(UsagePeriodEntity.id)).where(
                UsagePeriodEntity.user_id == user_id
            )
        )
        assert rows.scalar_one() == 1

        snapshot = await repo.get_snapshot(user_id, PERIOD)
        assert snapshot.resources_created == 5
        assert snapshot.files_uploaded == 1
        assert snapshot.storage_bytes == 15

    async def test_feature_upsert_accumulates(self, individual_account):
        repo = UsageRepository()
        user_id = individual_account.user.id

        await repo.add_feature_activation(user_id, PERIOD, "chatbot")
        await repo.add_feature_activation(user_id, PERIOD, "chatbot", 2)

        snapshot = await repo.get_snapshot(user_id, PERIOD)
        assert snapshot.features == {"chatbot": 3}
        # Feature-only periods still report zero counters
        assert snapshot.resources_created == 0

    async def test_snapshot_is_none_when_never_metered(self, individual_account):
        assert await UsageRepository().get_snapshot(individual_account.user.id, PERIOD) is None

    async def test_ensure_period_is_idempotent(self, individual_account):
        repo = UsageRepository()
        user_id = individual_account.user.id

        await repo.ensure_period(user_id, PERIOD)
        await repo.add_to_period(user_id, PERIOD, resources_created=2)
        await repo.ensure_period(user_id, PERIOD)

        assert (await repo.get_snapshot(user_id, PERIOD)).resources_created == 2
