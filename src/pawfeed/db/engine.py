"""Async SQLAlchemy engine and session creation."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pawfeed.db.base import Base, LocalBase


def create_db_engine(url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine."""
    engine_kwargs: dict = {"echo": False}

    # SQLite does not support pool_size / max_overflow
    if "sqlite" not in url:
        engine_kwargs.update(pool_size=10, max_overflow=20)
    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine, local: bool = False) -> None:
    """Create the remote (or local storage) tables if they do not exist."""
    import pawfeed.db.models  # noqa: F401  register all ORM models

    metadata = LocalBase.metadata if local else Base.metadata
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
