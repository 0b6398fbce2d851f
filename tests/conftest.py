"""Shared fixtures: in-memory stores, a SQLite database and an API client."""
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.main import app
from db.session import create_session_factory, create_tables
from services.session_resolver import SessionResolver

from fakes import CACHE_TTL, FakeCacheStore, FakeClock, FakeRecordStore


@pytest.fixture
def cache_store() -> FakeCacheStore:
    return FakeCacheStore()


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def resolver(
    cache_store: FakeCacheStore, record_store: FakeRecordStore, clock: FakeClock,
) -> SessionResolver:
    return SessionResolver(cache_store, record_store, CACHE_TTL, clock=clock)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    resolver: SessionResolver,
    record_store: FakeRecordStore,
) -> AsyncGenerator[AsyncClient]:
    """API client wired to the fake stores (the lifespan is not run)."""
    app.state.session_factory = session_factory
    app.state.record_store = record_store
    app.state.session_resolver = resolver
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac
