# Shared pytest configuration and fixtures for all test types
from decimal import Decimal
from typing import Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from slowapi import Limiter
from slowapi.util import get_remote_address
from unittest.mock import AsyncMock, patch

# Create test limiter with no limits and in-memory storage
test_limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri="memory://",
    enabled=False,
)

# Patch the limiter before importing the app so decorators use test limiter
with patch("common.providers.rate_limiter.limiter.limiter", test_limiter):
    from api.main import app

from common.db.session import get_db
from common.db.base import Base
from common.providers.caching.memory_cache import MemoryCache
from common.providers.storage.factory import get_storage
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
from packages.billing.models.domain.plan import Plan
from packages.users.models.domain.user import AuthenticatedAccount
from packages.users.models.schemas.user import EnterpriseRegisterRequest
from packages.users.services.account_service import AccountService

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

MIB = 1024 * 1024

DEFAULT_PLANS = [
    dict(name="free", display_name="Free", url_limit=2, price=Decimal("0.00"), file_size_limit_bytes=5 * MIB),
    dict(name="lite", display_name="Lite", url_limit=50, price=Decimal("4.99"), file_size_limit_bytes=10 * MIB),
    dict(name="pro", display_name="Pro", url_limit=250, price=Decimal("14.99"), file_size_limit_bytes=25 * MIB),
    dict(name="enterprise", display_name="Enterprise", url_limit=None, price=Decimal("0.00"), file_size_limit_bytes=50 * MIB),
]


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly on SQLite."""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    _enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so transaction() commits
    and rollbacks map onto savepoints of the outer test transaction.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch session factories to use test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest_asyncio.fixture(scope="function", autouse=True)
async def memory_cache(monkeypatch):
    """Fresh in-process cache per test instead of Redis."""
    cache = MemoryCache()
    monkeypatch.setattr("common.providers.caching.factory._cache_provider", cache)
    return cache


@pytest_asyncio.fixture(scope="function", autouse=True)
async def default_plans(test_db: AsyncSession) -> Dict[str, Plan]:
    """Seed the plan catalogue the initial migration ships with."""
    entities = [PlanEntity(**values) for values in DEFAULT_PLANS]
    test_db.add_all(entities)
    await test_db.commit()
    for entity in entities:
        await test_db.refresh(entity)
    await test_db.commit()
    return {entity.name: Plan.model_validate(entity) for entity in entities}


@pytest.fixture
def mock_storage():
    """Object storage double. Uploads succeed and signed URLs are fixed."""
    storage = AsyncMock()
    storage.upload = AsyncMock(return_value=True)
    storage.delete = AsyncMock(return_value=True)
    storage.issue_signed_url = AsyncMock(
        return_value="https://files.example.com/signed?sig=abc"
    )
    return storage


@pytest_asyncio.fixture(scope="function")
async def client(test_session_factory, mock_storage):
    """Create a test client."""

    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: mock_storage

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# Accounts
# =============================================================================


@pytest.fixture
def auth_headers():
    """Build the bearer header for an account."""

    def _headers(account: AuthenticatedAccount) -> Dict[str, str]:
        return {"Authorization": f"Bearer {account.token}"}

    return _headers


def enterprise_request(name: str = "Acme Corp") -> EnterpriseRegisterRequest:
    return EnterpriseRegisterRequest(
        organization_name=name,
        password="enterprise-secret",
        website="https://acme.example.com",
    )


@pytest_asyncio.fixture(scope="function")
async def individual_account() -> AuthenticatedAccount:
    """Active individual account on the free plan."""
    return await AccountService().register("alice@example.com", "secret123")


@pytest_asyncio.fixture(scope="function")
async def pending_enterprise():
    """Enterprise account awaiting its registration fee: (account, fee invoice)."""
    return await AccountService().register_enterprise(enterprise_request())


@pytest_asyncio.fixture(scope="function")
async def enterprise_account(pending_enterprise) -> AuthenticatedAccount:
    """Activated enterprise account."""
    account, _ = pending_enterprise
    service = AccountService()
    user, _ = await service.activate_enterprise(account.user.id, "pay_ref_123")
    return AuthenticatedAccount(user=user, token=account.token)
