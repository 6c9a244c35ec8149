"""Pytest configuration and fixtures."""

import os

import asyncpg
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from posledger.core.db import Base, get_db
from posledger.main import create_app

# Import all models so create_all sees every table
import posledger.models  # noqa: F401
from posledger.models.store import Store
from tests.factories import StoreFactory

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "postgresql+asyncpg://posledger:dev_password_change_in_prod@db:5432/posledger_test",
)


@pytest_asyncio.fixture(scope="function", autouse=True)
async def setup_test_database():
    """Create test database using raw asyncpg connection."""
    url = make_url(TEST_DATABASE_URL)
    try:
        # Connect to postgres database (always exists)
        conn = await asyncpg.connect(
            host=url.host,
            port=url.port or 5432,
            user=url.username,
            password=url.password,
            database="postgres",
        )

        # Create database if it doesn't exist
        try:
            await conn.execute(f"CREATE DATABASE {url.database}")
        except asyncpg.DuplicateDatabaseError:
            pass  # Database already exists

        await conn.close()
    except Exception as e:
        print(f"Warning: Could not create test database: {e}")

    yield


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Fresh schema for each test."""
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Independent sessions, one per concurrent actor."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create fresh DB session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> Store:
    return await StoreFactory.create(db_session)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, store: Store):
    """Async test client scoped to `store`, with the DB dependency overridden."""
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Store-ID": str(store.id), "X-Actor": "cashier-1"},
    ) as ac:
        ac.store = store
        ac.db_session = db_session
        yield ac


@pytest_asyncio.fixture
async def anonymous_client(db_session: AsyncSession):
    """Client without tenant headers (for testing context failures)."""
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
