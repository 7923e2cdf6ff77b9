"""Request dependencies for FastAPI.

Provides the database session, settings and build queue objects stored
on the application state to route handlers.

Transaction boundaries for the database session are managed here:
- Session is created at request start
- On success (no exception): session is committed automatically
- On exception: session is rolled back automatically
- Session is closed after request completes
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from cratedocs.config import Settings
from cratedocs.queue.pool import BlockingPool
from cratedocs.queue.service import BuildQueue


def get_session_factory(request: Request) -> sessionmaker[Session]:
    """Get session factory from app state."""
    factory: Any = request.app.state.session_factory
    return factory  # type: ignore[no-any-return]


def get_db(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> Generator[Session, None, None]:
    """Provide a database session for a request.

    Yields:
        Database session.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was started with."""
    settings: Settings = request.app.state.settings
    return settings


def get_build_queue(request: Request) -> BuildQueue:
    """Get the shared build queue."""
    queue: BuildQueue = request.app.state.build_queue
    return queue


def get_blocking_pool(request: Request) -> BlockingPool:
    """Get the worker pool for blocking queue calls."""
    pool: BlockingPool = request.app.state.blocking_pool
    return pool


# Type aliases for dependencies
DbSession = Annotated[Session, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Queue = Annotated[BuildQueue, Depends(get_build_queue)]
Pool = Annotated[BlockingPool, Depends(get_blocking_pool)]
