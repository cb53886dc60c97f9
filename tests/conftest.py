"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pawfeed.db.base import Base, LocalBase
# Import all models to register with the metadata
import pawfeed.db.models  # noqa: F401
from pawfeed.errors.exceptions import LocalStorageError
from pawfeed.storage.local import KeyValueStorage, SqlKeyValueStorage
from pawfeed.store.sql_store import SqlDocumentStore


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine standing in for the remote document store."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def local_engine():
    """In-memory SQLite engine standing in for on-device storage."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(LocalBase.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def local_session_factory(local_engine):
    return async_sessionmaker(local_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return SqlDocumentStore(session_factory)


@pytest.fixture
def storage(local_session_factory):
    return SqlKeyValueStorage(local_session_factory)


@pytest.fixture
def app(session_factory, local_session_factory):
    """Create a test application instance with in-memory databases."""
    from pawfeed.main import attach_backends, create_app

    _app = create_app()
    attach_backends(_app, session_factory, local_session_factory)
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.feed_registry.close_all()


class MemoryStorage(KeyValueStorage):
    """Dict-backed key/value storage with switchable failures."""

    def __init__(self, initial=None):
        self.data: dict[str, str] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key):
        if self.fail_reads:
            raise LocalStorageError("read failed")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail_writes:
            raise LocalStorageError("write failed")
        self.data[key] = value


@pytest.fixture
def memory_storage():
    return MemoryStorage()
