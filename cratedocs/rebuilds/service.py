"""Externally triggered rebuilds.

A rebuild request passes three gates before it reaches the build queue:

1. authorize_rebuild(): the bearer token must match the configured secret.
2. check_rebuild_target(): the release must exist and must not already
   be queued.
3. submit_rebuild(): the release is queued at TRIGGERED_REBUILD_PRIORITY.

The queued-check and the submit are separate queue calls, so two
concurrent requests for the same release can both pass the check. The
queue keeps a single row per release, so the second submit only
refreshes the existing entry.
"""

from __future__ import annotations

import hmac
import logging

import semver
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cratedocs.errors import (
    AlreadyQueuedError,
    StorageError,
    SubmissionError,
    UnauthorizedError,
    VersionNotFoundError,
)
from cratedocs.queue.pool import BlockingPool
from cratedocs.queue.service import BuildQueue
from cratedocs.releases.service import release_exists

logger = logging.getLogger(__name__)

# Fixed tier for externally triggered rebuilds; smaller priorities build first
# and this positive value is used by no other caller.
TRIGGERED_REBUILD_PRIORITY = 5

NOT_CONFIGURED = "Endpoint is not configured"
MISSING_TOKEN = "Missing authentication token"
INVALID_TOKEN = "The token used for authentication is not valid"


def parse_bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header value.

    Returns None when the header is absent or uses another scheme.
    """
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authorize_rebuild(expected_token: str | None, token: str | None) -> None:
    """Check a caller's token against the configured secret.

    Args:
        expected_token: Configured secret; None disables the endpoint.
        token: Token supplied by the caller, if any.

    Raises:
        UnauthorizedError: If the endpoint is disabled, or the token is
            missing or wrong.
    """
    if expected_token is None:
        raise UnauthorizedError(NOT_CONFIGURED)
    if token is None:
        raise UnauthorizedError(MISSING_TOKEN)
    if not hmac.compare_digest(token.encode(), expected_token.encode()):
        logger.warning("Rejected rebuild request with an invalid token")
        raise UnauthorizedError(INVALID_TOKEN)


def ensure_release_exists(session: Session, name: str, version: str) -> None:
    """Fail unless the release is in the catalog.

    Raises:
        VersionNotFoundError: If the release does not exist.
        StorageError: If the catalog cannot be queried.
    """
    try:
        exists = release_exists(session, name, version)
    except SQLAlchemyError as e:
        logger.exception("Failed to look up %s %s", name, version)
        raise StorageError(f"Failed to look up {name} {version}") from e
    if not exists:
        raise VersionNotFoundError(name, version)


def ensure_not_queued(queue: BuildQueue, name: str, version: str) -> None:
    """Fail if a build for the release is already pending.

    Blocking; run it on a BlockingPool.

    Raises:
        AlreadyQueuedError: If a pending entry exists.
        StorageError: If the queue cannot be queried.
    """
    try:
        queued = queue.has_build_queued(name, version)
    except SQLAlchemyError as e:
        logger.exception("Failed to check the build queue for %s %s", name, version)
        raise StorageError(f"Failed to check the build queue for {name} {version}") from e
    if queued:
        raise AlreadyQueuedError(name, version)


async def check_rebuild_target(
    session: Session,
    queue: BuildQueue,
    pool: BlockingPool,
    name: str,
    version: semver.Version,
) -> None:
    """Verify a rebuild target exists and is not already queued.

    Raises:
        VersionNotFoundError: If the release does not exist.
        AlreadyQueuedError: If a build is already pending.
        StorageError: If the catalog or queue cannot be queried.
    """
    version_string = str(version)
    await run_in_threadpool(ensure_release_exists, session, name, version_string)
    await pool.run(ensure_not_queued, queue, name, version_string)


def submit_rebuild(queue: BuildQueue, name: str, version: str) -> None:
    """Queue a rebuild at the triggered-rebuild priority.

    Blocking; run it on a BlockingPool. Returns as soon as the queue
    accepts the entry.

    Raises:
        SubmissionError: If the queue fails to accept the entry.
    """
    try:
        # Registry is None: the registry itself is the only caller
        queue.add_crate(name, version, TRIGGERED_REBUILD_PRIORITY, None)
    except SQLAlchemyError as e:
        logger.exception("Failed to queue rebuild of %s %s", name, version)
        raise SubmissionError(f"Failed to queue rebuild of {name} {version}") from e


async def trigger_rebuild(
    *,
    session: Session,
    queue: BuildQueue,
    pool: BlockingPool,
    expected_token: str | None,
    token: str | None,
    name: str,
    version: str,
) -> None:
    """Authorize, deduplicate and queue a rebuild request.

    Args:
        session: Database session for the catalog lookup.
        queue: Build queue to submit to.
        pool: Worker pool for blocking queue calls.
        expected_token: Configured secret; None disables the endpoint.
        token: Bearer token supplied by the caller.
        name: Crate name.
        version: Exact version from the request path.

    Raises:
        UnauthorizedError: On any authorization failure.
        VersionNotFoundError: If the version is malformed or unknown.
        AlreadyQueuedError: If a build is already pending.
        StorageError: If the catalog or queue cannot be queried.
        SubmissionError: If the queue rejects the entry.
    """
    authorize_rebuild(expected_token, token)

    try:
        parsed = semver.Version.parse(version)
    except ValueError:
        raise VersionNotFoundError(name, version) from None

    await check_rebuild_target(session, queue, pool, name, parsed)
    await pool.run(submit_rebuild, queue, name, str(parsed))
    logger.info("Accepted rebuild request for %s %s", name, parsed)


__all__ = [
    "INVALID_TOKEN",
    "MISSING_TOKEN",
    "NOT_CONFIGURED",
    "TRIGGERED_REBUILD_PRIORITY",
    "authorize_rebuild",
    "check_rebuild_target",
    "ensure_not_queued",
    "ensure_release_exists",
    "parse_bearer_token",
    "submit_rebuild",
    "trigger_rebuild",
]
