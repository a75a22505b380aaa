"""
Pytest fixtures for testing.

Provides:
- Async database session on an in-memory SQLite engine
- Test client with the session wired into ``get_db``
- Factory fixtures for users, posts and grants
- Auth header helpers
"""

import os

# Must be set before the app (and its engine) is imported
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from permipulse.main import app
from permipulse.models.base import Base
from permipulse.models.post import Post
from permipulse.models.user import User
from permipulse.api.dependencies.database import get_db
from permipulse.core.auth.permissions import PermissionName
from permipulse.core.auth.roles import Role
from permipulse.core.auth.tokens import create_access_token
from permipulse.services.auth import hash_password
from permipulse.services.grants import GrantStore


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session with automatic rollback.

    Requests made through ``client`` share this session, so state written
    by one request is visible to the next and to the test body.
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with database session override.
    """

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============ Factory Fixtures ============


class UserFactory:
    """Factory for creating test users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        role: Role = Role.USER,
        grants: tuple[PermissionName, ...] = (),
    ) -> User:
        """Create a user in the database."""
        email = email or f"test-{uuid4().hex[:8]}@example.com"

        user = User(
            email=email,
            password_hash=hash_password(password),
            name=name,
            role=role,
            permissions=[],
        )
        self.db.add(user)
        await self.db.flush()

        store = GrantStore(self.db)
        for permission in grants:
            await store.grant(user.id, permission)

        return user


class PostFactory:
    """Factory for creating test posts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        author: User,
        title: str = "Hello",
        content: str = "First post",
    ) -> Post:
        post = Post(title=title, content=content, user_id=author.id, author=author)
        self.db.add(post)
        await self.db.flush()
        return post


@pytest_asyncio.fixture
async def user_factory(db: AsyncSession) -> UserFactory:
    """Fixture that provides UserFactory."""
    return UserFactory(db)


@pytest_asyncio.fixture
async def post_factory(db: AsyncSession) -> PostFactory:
    """Fixture that provides PostFactory."""
    return PostFactory(db)


@pytest_asyncio.fixture
async def admin_user(user_factory: UserFactory) -> User:
    """The single ADMIN."""
    return await user_factory.create(
        email="admin@example.com",
        name="Admin",
        role=Role.ADMIN,
    )


@pytest_asyncio.fixture
async def sub_admin(user_factory: UserFactory) -> User:
    """A SUB_ADMIN with no grants."""
    return await user_factory.create(
        email="sub@example.com",
        name="Sub Admin",
        role=Role.SUB_ADMIN,
    )


@pytest_asyncio.fixture
async def test_user(user_factory: UserFactory) -> User:
    """Create a standard test user."""
    return await user_factory.create(email="user@example.com", name="Regular User")


@pytest_asyncio.fixture
async def other_user(user_factory: UserFactory) -> User:
    """A second regular user."""
    return await user_factory.create(email="other@example.com", name="Other User")


# ============ Auth Helpers ============


def get_auth_headers(user: User) -> dict[str, str]:
    """Helper to get auth headers for any user."""
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build auth headers for an arbitrary user inside a test."""
    return get_auth_headers


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Get auth headers for test user."""
    return get_auth_headers(test_user)


@pytest_asyncio.fixture
async def admin_auth_headers(admin_user: User) -> dict[str, str]:
    """Get auth headers for admin user."""
    return get_auth_headers(admin_user)


@pytest_asyncio.fixture
async def sub_admin_auth_headers(sub_admin: User) -> dict[str, str]:
    """Get auth headers for the sub-admin."""
    return get_auth_headers(sub_admin)
