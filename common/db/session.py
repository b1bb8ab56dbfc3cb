from uuid import uuid4

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import pool
import time
from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)

# Replace postgresql:// with postgresql+asyncpg:// for async support
ASYNC_DATABASE_URL = settings.database_url.replace(
    "postgresql://", "postgresql+asyncpg://"
)

# NullPool (db_use_nullpool=True): new connection per operation (scripts, one-off jobs)
# Default pool: connection pooling for the API process
engine_kwargs = {
    "echo": settings.debug,
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "connect_args": {
        "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4()}__",
    },
}

if settings.db_use_nullpool:
    logger.info("Using NullPool - no connection pooling")
    engine_kwargs["poolclass"] = pool.NullPool
else:
    logger.info(
        f"Using connection pooling - pool_size={settings.db_pool_size}, max_overflow={settings.db_pool_overflow}"
    )
    engine_kwargs["pool_size"] = settings.db_pool_size
    engine_kwargs["max_overflow"] = settings.db_pool_overflow

engine = create_async_engine(ASYNC_DATABASE_URL, **engine_kwargs)
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Same engine today; point this at a read replica when one exists
AsyncSessionLocalReadonly = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db():
    """Request-scoped session. Commits on success, rolls back on error."""
    start = time.perf_counter()
    async with AsyncSessionLocal() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(f"Session acquire: {acquire_time * 1000:.2f}ms")

        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Rolling back due to error {e}")
            await session.rollback()
            raise


async def init_db():
    # Schema is owned by alembic migrations
    logger.info(f"Database engine ready for {settings.db_host}:{settings.db_port}")


async def dispose_db():
    await engine.dispose()
    logger.info("Database engine disposed")
