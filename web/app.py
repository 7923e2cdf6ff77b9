"""FastAPI application factory and main app.

This module creates the FastAPI application with all routers and
the shared state (database, build queue, worker pool) configured.

Web routes are thin proxies to the core cratedocs services.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from cratedocs import __version__
from cratedocs.config import Settings, get_settings
from cratedocs.db import create_all_tables, get_engine, get_session_factory
from cratedocs.queue.pool import BlockingPool
from cratedocs.queue.service import BuildQueue
from web.routers import crates, health


def configure_state(application: FastAPI, settings: Settings, engine: Any) -> None:
    """Attach settings, sessions, build queue and worker pool to the app."""
    session_factory = get_session_factory(engine)
    application.state.settings = settings
    application.state.session_factory = session_factory
    application.state.build_queue = BuildQueue(
        session_factory, max_attempts=settings.build_attempts
    )
    application.state.blocking_pool = BlockingPool(settings.queue_workers)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Initializes database tables and the queue worker pool on startup,
    and shuts the pool down on exit.
    """
    settings = get_settings()
    engine = get_engine(settings.db_url)
    create_all_tables(engine)
    configure_state(app, settings, engine)
    try:
        yield
    finally:
        app.state.blocking_pool.shutdown()
        engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Set up state on startup. Tests disable this and
            call configure_state() themselves.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(
        title="cratedocs API",
        description="Build history and rebuild triggers for crate documentation",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    application.include_router(health.router, tags=["health"])
    application.include_router(crates.router, prefix="/crate", tags=["crates"])

    return application


# Create the default application instance
app = create_app()
