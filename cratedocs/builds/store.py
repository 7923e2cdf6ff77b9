"""Build history queries.

fetch_builds() is the only read path for build history. In-progress
builds are filtered in SQL and rows come back newest attempt first.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import semver
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cratedocs.builds.models import Build
from cratedocs.errors import StorageError
from cratedocs.releases.models import Crate, Release
from cratedocs.types import BuildRecord, BuildStatus

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; stored timestamps are UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_record(build: Build) -> BuildRecord:
    return BuildRecord(
        id=build.id,
        rustc_version=build.rustc_version,
        docsrs_version=build.docsrs_version,
        status=BuildStatus(build.build_status),
        build_time=_as_utc(build.build_time),
        errors=build.errors,
    )


def fetch_builds(
    session: Session, name: str, version: semver.Version | str
) -> list[BuildRecord]:
    """Fetch the finished builds of a release, most recent first.

    Args:
        session: Database session.
        name: Exact crate name.
        version: Exact release version.

    Returns:
        BuildRecords ordered by descending id. Empty if the release
        has no finished builds or does not exist.

    Raises:
        StorageError: If the query fails.
    """
    stmt = (
        select(Build)
        .join(Release, Release.id == Build.release_id)
        .join(Crate, Crate.id == Release.crate_id)
        .where(
            Crate.name == name,
            Release.version == str(version),
            Build.build_status != BuildStatus.IN_PROGRESS.value,
        )
        .order_by(Build.id.desc())
    )
    try:
        builds = session.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch builds for %s %s", name, version)
        raise StorageError(f"Failed to fetch builds for {name} {version}") from e

    return [_to_record(build) for build in builds]


__all__ = ["fetch_builds"]
