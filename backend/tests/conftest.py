# Shared pytest configuration and fixtures for all test types
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from slowapi import Limiter
from unittest.mock import AsyncMock, patch

from common.providers.rate_limiter.limiter import get_rate_limit_key

# Create test limiter with no limits and in-memory storage
test_limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[],
    storage_uri="memory://",
)

# Patch the limiter before importing the app so decorators use test limiter
with patch("common.providers.rate_limiter.limiter.limiter", test_limiter):
    from api.main import app

from common.db.base import Base, utcnow
from common.db.session import get_db
from packages.users.models.database.user import UserEntity
from packages.billing.models.database.plan import SubscriptionPlanEntity
from packages.billing.models.database.subscription import UserSubscriptionEntity
from packages.billing.models.database.payment import PaymentTransactionEntity  # noqa
from packages.billing.models.domain.enums import (
    Feature,
    PlanDuration,
    SubscriptionStatus,
    UserRole,
)
from packages.billing.providers.notification.dispatcher import NotificationDispatcher

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
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

    Using join_transaction_mode="create_savepoint" so nested transaction()
    calls create savepoints instead of real nested transactions.
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


@pytest.fixture
def mock_notification_provider():
    provider = AsyncMock()
    provider.notify = AsyncMock(return_value=True)
    return provider


@pytest.fixture(autouse=True)
def notification_dispatcher(mock_notification_provider, monkeypatch):
    """Route every notification to a mock provider instead of RabbitMQ."""
    dispatcher = NotificationDispatcher(provider=mock_notification_provider)
    monkeypatch.setattr(
        "packages.billing.providers.notification.dispatcher._dispatcher", dispatcher
    )
    return dispatcher


# ============================================================================
# Users
# ============================================================================


async def _create_user(test_db: AsyncSession, email: str, role: UserRole) -> UserEntity:
    user = UserEntity(
        email=email,
        full_name=email.split("@")[0].title(),
        role=role.value,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest_asyncio.fixture
async def model_user(test_db: AsyncSession):
    return await _create_user(test_db, "model@example.com", UserRole.MODEL)


@pytest_asyncio.fixture
async def employer_user(test_db: AsyncSession):
    return await _create_user(test_db, "employer@example.com", UserRole.EMPLOYER)


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession):
    return await _create_user(test_db, "admin@example.com", UserRole.ADMIN)


# ============================================================================
# Plans
# ============================================================================


async def _create_plan(test_db: AsyncSession, **kwargs) -> SubscriptionPlanEntity:
    plan = SubscriptionPlanEntity(**kwargs)
    test_db.add(plan)
    await test_db.commit()
    await test_db.refresh(plan)
    return plan


@pytest_asyncio.fixture
async def free_plan(test_db: AsyncSession):
    return await _create_plan(
        test_db,
        name="Free",
        price=Decimal("0.00"),
        currency="KZT",
        duration=PlanDuration.YEARLY.value,
        limits={"publications": 3, "responses": 10, "messages": 20, "promotions": 0},
        features={},
    )


@pytest_asyncio.fixture
async def pro_plan(test_db: AsyncSession):
    return await _create_plan(
        test_db,
        name="Pro",
        description="For active employers",
        price=Decimal("4990.00"),
        currency="KZT",
        duration=PlanDuration.MONTHLY.value,
        limits={"publications": 20, "responses": -1, "messages": 100, "promotions": 2},
        features={"highlighted_profile": True},
    )


@pytest_asyncio.fixture
async def model_plan(test_db: AsyncSession):
    return await _create_plan(
        test_db,
        name="Model Plus",
        price=Decimal("1990.00"),
        currency="KZT",
        duration=PlanDuration.WEEKLY.value,
        limits={"responses": 50},
        features={},
        target_role=UserRole.MODEL.value,
    )


# ============================================================================
# Subscriptions
# ============================================================================


@pytest.fixture
def make_subscription(test_db: AsyncSession):
    """Factory for subscription rows with explicit period and usage."""

    async def _make(
        user,
        plan,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        start_offset: timedelta = timedelta(days=-1),
        end_offset: timedelta = timedelta(days=29),
        usage=None,
        auto_renew: bool = True,
    ) -> UserSubscriptionEntity:
        now = utcnow()
        subscription = UserSubscriptionEntity(
            user_id=user.id,
            plan_id=plan.id,
            status=status.value,
            start_date=now + start_offset,
            end_date=now + end_offset,
            usage=usage if usage is not None else Feature.zeroed_counters(),
            auto_renew=auto_renew,
        )
        test_db.add(subscription)
        await test_db.commit()
        await test_db.refresh(subscription)
        return subscription

    return _make


# ============================================================================
# HTTP clients
# ============================================================================


@pytest_asyncio.fixture(scope="function")
async def http_client(test_db: AsyncSession):
    """Create a test client without an identity header."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(http_client: AsyncClient, model_user):
    """Client authenticated as a model user via the gateway identity header."""
    http_client.headers["X-User-Id"] = str(model_user.id)
    return http_client


@pytest_asyncio.fixture(scope="function")
async def admin_client(http_client: AsyncClient, admin_user):
    http_client.headers["X-User-Id"] = str(admin_user.id)
    return http_client
