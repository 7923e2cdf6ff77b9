"""Shared fixtures: a fresh SQLite database per test and release factories."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from cratedocs.builds.models import Build
from cratedocs.db import create_all_tables
from cratedocs.releases.models import Crate, Release
from cratedocs.types import BuildStatus

BASE_BUILD_TIME = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    """Create a file-backed SQLite engine usable from several threads."""
    db_file = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
        echo=False,
    )
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Create a session factory for testing."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create a session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_release(session):
    """Factory creating a release with builds.

    ``builds`` is a list of Build keyword dicts; by default the release gets
    one successful build. Build times increase with insertion order.
    """
    counter = {"builds": 0}

    def _make(
        name: str,
        version: str,
        builds: list[dict[str, Any]] | None = None,
        yanked: bool = False,
        description: str | None = None,
    ) -> Release:
        crate = session.execute(
            select(Crate).where(Crate.name == name)
        ).scalar_one_or_none()
        if crate is None:
            crate = Crate(name=name)
            session.add(crate)
            session.flush()

        release = Release(
            crate_id=crate.id,
            version=version,
            yanked=yanked,
            description=description,
        )
        session.add(release)
        session.flush()

        if builds is None:
            builds = [{}]
        for spec in builds:
            counter["builds"] += 1
            values: dict[str, Any] = {
                "rustc_version": "rustc 1.70.0",
                "docsrs_version": "docs.rs 1.0.0",
                "build_status": BuildStatus.SUCCESS.value,
                "build_time": BASE_BUILD_TIME + timedelta(hours=counter["builds"]),
            }
            values.update(spec)
            session.add(Build(release_id=release.id, **values))

        session.commit()
        return release

    return _make
