"""Database plumbing shared by the catalog, build history and build queue.

Everything here takes its engine or session factory explicitly; the web
app and the CLI each build their own from ``Settings.db_url``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base for the crates, releases, builds and queue tables."""


def get_engine(db_url: str) -> Engine:
    """Create an engine for ``db_url``.

    SQLite connections are shared between request threads and the build
    queue pool, so thread checks are disabled and the database directory
    is created on first use.
    """
    url = make_url(db_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args=connect_args)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory whose objects stay usable after commit."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Open a session that commits on success and rolls back on error."""
    with session_factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def create_all_tables(engine: Engine) -> None:
    """Create any missing tables."""
    # Model modules register their tables on import
    from cratedocs.builds import models as builds_models  # noqa: F401
    from cratedocs.queue import models as queue_models  # noqa: F401
    from cratedocs.releases import models as releases_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "create_all_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
]
