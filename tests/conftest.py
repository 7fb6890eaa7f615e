"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory, one shared connection)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_NOW = datetime(2026, 3, 1, 12, 0, 0)


class MutableClock:
    """Clock handed to the invitation service so tests can move time forward."""

    def __init__(self, now: datetime = TEST_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def owner() -> TokenUser:
    """The user who creates organizations and sends invitations."""
    return TokenUser(id=uuid4(), email="owner@acme.com", display_name="Olivia Owner")


@pytest.fixture
def invitee() -> TokenUser:
    """The user invitations are addressed to."""
    return TokenUser(id=uuid4(), email="invitee@example.com", display_name="Ivan Invitee")


@pytest.fixture
def stranger() -> TokenUser:
    """A user with no relationship to any organization."""
    return TokenUser(id=uuid4(), email="stranger@other.org", display_name="Sam Stranger")


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def headers_for(auth_provider: JWTAuthProvider) -> Callable[[TokenUser], dict[str, str]]:
    """Build authorization headers carrying a signed token for a user."""

    def _headers(user: TokenUser) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth_provider.create_token(user)}"}

    return _headers


@pytest.fixture
def owner_headers(
    headers_for: Callable[[TokenUser], dict[str, str]], owner: TokenUser
) -> dict[str, str]:
    return headers_for(owner)


@pytest.fixture
def invitee_headers(
    headers_for: Callable[[TokenUser], dict[str, str]], invitee: TokenUser
) -> dict[str, str]:
    return headers_for(invitee)


@pytest.fixture
def stranger_headers(
    headers_for: Callable[[TokenUser], dict[str, str]], stranger: TokenUser
) -> dict[str, str]:
    return headers_for(stranger)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    auth_provider: JWTAuthProvider,
    clock: MutableClock,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the in-memory database.

    This client:
    - Verifies real HS256 tokens signed by ``auth_provider``
    - Builds services on a UoW factory bound to the test database
    - Drives invitation expiry from the ``clock`` fixture
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import (
        get_invitation_service,
        get_organization_service,
        get_profile_service,
    )
    from domain.services.invitation_service import InvitationService
    from domain.services.organization_service import OrganizationService
    from domain.services.profile_service import ProfileService
    from infrastructure.database.session import get_async_session
    from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
    from main import create_app

    app = create_app()

    def test_uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    organization_service = OrganizationService(test_uow_factory)
    invitation_service = InvitationService(test_uow_factory, clock=clock)
    profile_service = ProfileService(test_uow_factory)

    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_organization_service] = lambda: organization_service
    app.dependency_overrides[get_invitation_service] = lambda: invitation_service
    app.dependency_overrides[get_profile_service] = lambda: profile_service
    app.dependency_overrides[get_async_session] = override_get_async_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
