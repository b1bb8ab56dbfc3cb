"""
Alembic environment.

The database URL comes from common.core.config.settings so migrations hit the
same database as the API. The URL in alembic.ini is only a CLI fallback.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from common.core.config import settings
from common.db.base import Base

# Import all entities so their tables are registered on Base.metadata
from packages.users.models.database.user import UserEntity  # noqa: F401
from packages.auth.models.database.access_token import AccessTokenEntity  # noqa: F401
from packages.billing.models.database import (  # noqa: F401
    InvoiceEntity,
    PlanEntity,
    SubscriptionEntity,
    UsageFeatureCounterEntity,
    UsagePeriodEntity,
)
from packages.links.models.database.link import LinkEntity  # noqa: F401

config = context.config
config.set_main_option(
    "sqlalchemy.url",
    settings.database_url.replace("postgresql://", "postgresql+asyncpg://"),
)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL to stdout)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (connect to DB)."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
