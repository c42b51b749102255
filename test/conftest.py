"""
Pytest configuration and fixtures for cookie consent tests
"""

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cookie_consent.config import Settings  # noqa: E402
from cookie_consent.database import Base, get_db  # noqa: E402
from cookie_consent.main import create_app  # noqa: E402
from cookie_consent.models import CookiePolicy  # noqa: E402
from utils.mock_utils import make_policy  # noqa: E402

# Test database URL (SQLite in-memory for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# One shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function", autouse=True)
async def setup_test_database():
    """Create a fresh database for each test function"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


async def store_policy(version: str = "1.0.0", is_active: bool = False, with_marketing: bool = False) -> CookiePolicy:
    async with TestSessionLocal() as session:
        policy = make_policy(version, is_active=is_active, with_marketing=with_marketing)
        session.add(policy)
        await session.commit()
        await session.refresh(policy)
        return policy


@pytest.fixture
async def active_policy() -> CookiePolicy:
    return await store_policy("1.0.0", is_active=True)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        secret_key="test-secret",
        consent_cookie_secure=True,
        log_json=False,
    )


@pytest.fixture
def app(test_settings):
    """Application wired to the test database"""
    test_app = create_app(test_settings)

    async def override_get_db():
        async with TestSessionLocal() as session:
            yield session

    test_app.dependency_overrides[get_db] = override_get_db
    yield test_app
    test_app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    # https so the Secure consent cookie is sent back
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as ac:
        yield ac


@pytest.fixture
def policy_factory():
    """Unsaved policy builder, see make_policy"""
    return make_policy


@pytest.fixture
def policy_store():
    """Async helper that stores a policy built by make_policy"""
    return store_policy
