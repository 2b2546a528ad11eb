"""
Global pytest fixtures for all tests.

Includes:
- Database fixtures for CRUD/service tests
- An httpx client bound to the FastAPI app for router tests
- A small sample hierarchy built through the folder service
"""

import os
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before any app imports
# This prevents Settings validation errors during test collection
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("API_ORIGIN", "http://localhost:3000")

from notetree.db.base import Base  # noqa: E402
from notetree.main import app  # noqa: E402
from notetree.db.session import get_db_session  # noqa: E402
from notetree.services import folder_service  # noqa: E402


OWNER = "user-1"
OTHER_OWNER = "user-2"


# Database Testing Fixtures


@pytest_asyncio.fixture
async def test_engine():
    """
    Create an in-memory SQLite database engine for testing.

    Uses StaticPool to maintain single connection across async operations.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after tests
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """
    Provide a clean database session for each test.
    """
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()  # Rollback any uncommitted changes


# Sample hierarchy


@pytest_asyncio.fixture
async def sample_tree(db_session):
    """
    Build a folder hierarchy for OWNER:

    Root/
      C1/
        G1/
      C2/

    Returns a dict of title -> folder id.
    """
    root = await folder_service.initialize_root(OWNER, db_session)
    c1 = await folder_service.create_child(OWNER, "C1", root, db_session)
    c2 = await folder_service.create_child(OWNER, "C2", root, db_session)
    g1 = await folder_service.create_child(OWNER, "G1", c1, db_session)
    return {"Root": root, "C1": c1, "C2": c2, "G1": g1}


# FastAPI client Fixtures


@pytest_asyncio.fixture
async def test_client(db_session):
    """
    httpx client talking to the app in-process.

    Overrides the database dependency with the test session. Requests run on
    the test's event loop, so the async session can be shared.
    """

    async def override_get_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Owner-Id": OWNER},
    ) as client:
        yield client

    # Clear dependency overrides after test
    app.dependency_overrides.clear()


@pytest.fixture
def other_owner_headers():
    return {"X-Owner-Id": OTHER_OWNER}
