"""Release catalog service.

This module resolves URL version specifiers against the stored releases:
- match_version(): find the release a specifier points at
- resolve_version(): the same, plus the canonical-URL redirect decision
- release_exists(): plain existence check for an exact crate/version
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import semver
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cratedocs.builds.models import Build
from cratedocs.errors import (
    CrateNameMismatchError,
    StorageError,
    VersionNotFoundError,
)
from cratedocs.releases.models import Crate, Release
from cratedocs.releases.version import (
    InvalidVersionReq,
    ReqVersion,
    ReqVersionKind,
)
from cratedocs.types import BuildStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchedRelease:
    """Outcome of matching a specifier against a crate's releases.

    Attributes:
        name: Crate name as requested.
        corrected_name: Stored name, if it differs from the requested one.
        req_version: The specifier as requested.
        version: Exact version of the matched release.
        is_latest: Whether the matched release is the crate's latest one.
        description: Release description, if any.
    """

    name: str
    corrected_name: str | None
    req_version: ReqVersion
    version: semver.Version
    is_latest: bool
    description: str | None = None

    def assume_exact_name(self) -> MatchedRelease:
        """Return self, or fail if the crate name needs correcting.

        Raises:
            CrateNameMismatchError: If the stored name differs.
        """
        if self.corrected_name is not None:
            raise CrateNameMismatchError(self.name, self.corrected_name)
        return self

    def canonical_req_version(self) -> ReqVersion:
        """Return the specifier this release should be addressed by."""
        if self.req_version.is_canonical:
            return self.req_version
        if self.is_latest:
            return ReqVersion.latest()
        return ReqVersion.exact_version(self.version)


@dataclass(frozen=True)
class VersionRedirect:
    """Instruction to redirect to the canonical URL of a release."""

    name: str
    req_version: ReqVersion

    def path(self, suffix: str) -> str:
        """Build the redirect target for a crate sub-page."""
        return f"/crate/{self.name}/{self.req_version}/{suffix}"


def normalize_crate_name(name: str) -> str:
    """Normalize a crate name for lookups (case and ``-``/``_``)."""
    return name.lower().replace("_", "-")


def _find_crate(session: Session, name: str) -> Crate | None:
    crate = session.execute(
        select(Crate).where(Crate.name == name)
    ).scalar_one_or_none()
    if crate is not None:
        return crate

    normalized = func.replace(func.lower(Crate.name), "_", "-")
    return (
        session.execute(
            select(Crate).where(normalized == normalize_crate_name(name)).limit(1)
        )
        .scalars()
        .first()
    )


def _built_releases(
    session: Session, crate: Crate
) -> list[tuple[semver.Version, Release]]:
    """Releases with at least one finished build, newest version first."""
    finished = (
        select(Build.id)
        .where(
            Build.release_id == Release.id,
            Build.build_status != BuildStatus.IN_PROGRESS.value,
        )
        .exists()
    )
    rows = session.execute(
        select(Release).where(Release.crate_id == crate.id, finished)
    ).scalars()

    releases: list[tuple[semver.Version, Release]] = []
    for release in rows:
        try:
            releases.append((semver.Version.parse(release.version), release))
        except ValueError:
            logger.warning(
                "Skipping release %s %s with invalid version",
                crate.name,
                release.version,
            )
    releases.sort(key=lambda item: item[0], reverse=True)
    return releases


def _pick_latest(
    releases: list[tuple[semver.Version, Release]],
) -> tuple[semver.Version, Release] | None:
    for version, release in releases:
        if not release.yanked and version.prerelease is None:
            return version, release
    for version, release in releases:
        if not release.yanked:
            return version, release
    return releases[0] if releases else None


def match_version(session: Session, name: str, req_version: str) -> MatchedRelease:
    """Match a URL version specifier to a stored release.

    Only releases with at least one finished build are considered.

    Args:
        session: Database session.
        name: Crate name as requested.
        req_version: Raw version segment from the URL.

    Returns:
        The matched release.

    Raises:
        VersionNotFoundError: If the crate is unknown, the specifier is
            malformed, or nothing matches it.
        StorageError: If the catalog query fails.
    """
    try:
        parsed = ReqVersion.parse(req_version)
    except InvalidVersionReq:
        logger.debug("Invalid version specifier %r for %s", req_version, name)
        raise VersionNotFoundError(name, req_version) from None

    try:
        crate = _find_crate(session, name)
        releases = _built_releases(session, crate) if crate is not None else []
    except SQLAlchemyError as e:
        logger.exception("Failed to look up releases of %s", name)
        raise StorageError(f"Failed to look up releases of {name}") from e
    if crate is None:
        raise VersionNotFoundError(name, req_version)

    latest = _pick_latest(releases)
    if latest is None:
        raise VersionNotFoundError(name, req_version)

    matched: tuple[semver.Version, Release] | None = None
    if parsed.kind is ReqVersionKind.EXACT:
        matched = next(
            ((v, r) for v, r in releases if r.version == str(parsed.exact)), None
        )
    elif parsed.kind is ReqVersionKind.LATEST or (
        parsed.req is not None and parsed.req.is_star
    ):
        matched = latest
    else:
        assert parsed.req is not None
        candidates = [(v, r) for v, r in releases if parsed.req.matches(v)]
        matched = next(((v, r) for v, r in candidates if not r.yanked), None)
        if matched is None and candidates:
            matched = candidates[0]

    if matched is None:
        raise VersionNotFoundError(name, req_version)

    version, release = matched
    logger.debug("Matched %s %s to release %s", name, req_version, version)
    return MatchedRelease(
        name=name,
        corrected_name=crate.name if crate.name != name else None,
        req_version=parsed,
        version=version,
        is_latest=version == latest[0],
        description=release.description,
    )


def resolve_version(
    session: Session, name: str, req_version: str
) -> MatchedRelease | VersionRedirect:
    """Resolve a specifier, or decide to redirect to the canonical URL.

    A redirect is returned when the crate name needs correcting or the
    specifier is not already canonical (``latest`` or an exact version).

    Raises:
        VersionNotFoundError: If nothing matches.
        StorageError: If the catalog query fails.
    """
    matched = match_version(session, name, req_version)
    canonical = matched.canonical_req_version()
    try:
        matched.assume_exact_name()
    except CrateNameMismatchError as e:
        logger.debug("Redirecting %s to corrected name %s", name, e.corrected)
        return VersionRedirect(name=e.corrected, req_version=canonical)

    if canonical != matched.req_version:
        logger.debug("Redirecting %s %s to %s", name, req_version, canonical)
        return VersionRedirect(name=name, req_version=canonical)
    return matched


def release_exists(session: Session, name: str, version: str) -> bool:
    """Check that an exact crate/version is in the catalog.

    Args:
        session: Database session.
        name: Exact crate name.
        version: Exact version string.

    Returns:
        True if the release exists, regardless of its builds.
    """
    stmt = (
        select(Release.id)
        .join(Crate, Crate.id == Release.crate_id)
        .where(Crate.name == name, Release.version == version)
        .limit(1)
    )
    return session.execute(stmt).scalar_one_or_none() is not None


__all__ = [
    "MatchedRelease",
    "VersionRedirect",
    "match_version",
    "normalize_crate_name",
    "release_exists",
    "resolve_version",
]
