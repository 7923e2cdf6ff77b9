"""Build queue service.

BuildQueue is the shared work queue the build pipeline consumes. All of
its methods are blocking database calls; request handlers run them on a
BlockingPool (see cratedocs.queue.pool).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from cratedocs.db import get_session
from cratedocs.queue.models import QueueEntry
from cratedocs.types import QueuedCrate

logger = logging.getLogger(__name__)


class BuildQueue:
    """Priority queue of crate versions waiting for a documentation build.

    There is at most one row per (name, version). Re-adding a queued
    version resets its attempts and keeps the more urgent priority.
    """

    def __init__(
        self, session_factory: sessionmaker[Session], max_attempts: int = 5
    ) -> None:
        self._session_factory = session_factory
        self.max_attempts = max_attempts

    def _upsert(
        self,
        session: Session,
        name: str,
        version: str,
        priority: int,
        registry: str | None,
    ) -> None:
        entry = session.execute(
            select(QueueEntry).where(
                QueueEntry.name == name, QueueEntry.version == version
            )
        ).scalar_one_or_none()

        if entry is None:
            session.add(
                QueueEntry(
                    name=name,
                    version=version,
                    priority=priority,
                    registry_name=registry,
                    attempt=0,
                )
            )
            return

        entry.priority = min(entry.priority, priority)
        entry.registry_name = registry
        entry.attempt = 0
        entry.date_added = datetime.now(timezone.utc)

    def add_crate(
        self,
        name: str,
        version: str,
        priority: int = 0,
        registry: str | None = None,
    ) -> None:
        """Queue a crate version for building.

        Args:
            name: Crate name.
            version: Exact version string.
            priority: Scheduling priority (lower is more urgent).
            registry: Origin registry, None for the default registry.
        """
        try:
            with get_session(self._session_factory) as session:
                self._upsert(session, name, version, priority, registry)
        except IntegrityError:
            # Another submitter inserted the same key first
            logger.debug("Concurrent insert for %s %s, updating", name, version)
            with get_session(self._session_factory) as session:
                self._upsert(session, name, version, priority, registry)

        logger.info("Queued %s %s with priority %d", name, version, priority)

    def has_build_queued(self, name: str, version: str) -> bool:
        """Check whether a pending build exists for a crate version."""
        with get_session(self._session_factory) as session:
            entry_id = session.execute(
                select(QueueEntry.id)
                .where(
                    QueueEntry.name == name,
                    QueueEntry.version == version,
                    QueueEntry.attempt < self.max_attempts,
                )
                .limit(1)
            ).scalar_one_or_none()
        return entry_id is not None

    def pending_count(self) -> int:
        """Return the number of pending builds."""
        with get_session(self._session_factory) as session:
            count = session.execute(
                select(func.count(QueueEntry.id)).where(
                    QueueEntry.attempt < self.max_attempts
                )
            ).scalar()
        return count or 0

    def queued_crates(self) -> list[QueuedCrate]:
        """List pending builds in build order (priority, then age)."""
        with get_session(self._session_factory) as session:
            entries = session.execute(
                select(QueueEntry)
                .where(QueueEntry.attempt < self.max_attempts)
                .order_by(QueueEntry.priority, QueueEntry.id)
            ).scalars()
            return [
                QueuedCrate(
                    id=entry.id,
                    name=entry.name,
                    version=entry.version,
                    priority=entry.priority,
                    registry=entry.registry_name,
                    attempt=entry.attempt,
                    date_added=entry.date_added,
                )
                for entry in entries
            ]

    def remove_crate(self, name: str, version: str) -> bool:
        """Remove a crate version from the queue.

        Returns:
            True if an entry was removed.
        """
        with get_session(self._session_factory) as session:
            entry = session.execute(
                select(QueueEntry).where(
                    QueueEntry.name == name, QueueEntry.version == version
                )
            ).scalar_one_or_none()
            if entry is None:
                return False
            session.delete(entry)

        logger.info("Removed %s %s from the build queue", name, version)
        return True


__all__ = ["BuildQueue"]
