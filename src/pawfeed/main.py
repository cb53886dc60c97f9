"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pawfeed.config import settings
from pawfeed.db.engine import create_db_engine, create_session_factory, create_tables
from pawfeed.feed.registry import FeedRegistry
from pawfeed.logging_config import configure_logging
from pawfeed.storage.local import SqlKeyValueStorage
from pawfeed.store.sql_store import SqlDocumentStore

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=settings.json_logs and not settings.local_mode)

logger = logging.getLogger(__name__)


def attach_backends(app: FastAPI, remote_session_factory, local_session_factory) -> None:
    """Wire the document store, local storage and feed registry onto ``app.state``."""
    app.state.db_session_factory = remote_session_factory
    app.state.local_session_factory = local_session_factory
    app.state.document_store = SqlDocumentStore(remote_session_factory)
    app.state.local_storage = SqlKeyValueStorage(local_session_factory)
    app.state.feed_registry = FeedRegistry(
        app.state.document_store,
        app.state.local_storage,
        limit=settings.feed_limit,
        badge_cap=settings.badge_cap,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    local_url = settings.effective_local_storage_url

    engine = create_db_engine(db_url)
    local_engine = create_db_engine(local_url)

    # Auto-create tables for SQLite (local dev, no migrations)
    if "sqlite" in db_url:
        await create_tables(engine)
        logger.info("SQLite remote store tables created")
    await create_tables(local_engine, local=True)

    app.state.db_engine = engine
    app.state.local_engine = local_engine
    attach_backends(app, create_session_factory(engine), create_session_factory(local_engine))

    logger.info("PawFeed API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    # Shutdown
    await app.state.feed_registry.close_all()
    await engine.dispose()
    await local_engine.dispose()
    logger.info("PawFeed API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="PawFeed API",
        version="0.3.0",
        description="Unified notification feed and threaded comments for a pet-adoption community.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from pawfeed.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    # Register error handlers
    from pawfeed.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Import and mount routers
    from pawfeed.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
