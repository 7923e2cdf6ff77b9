"""Shared type definitions for cratedocs.

This module contains dataclasses and enums shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class BuildStatus(str, Enum):
    """Status of a documentation build attempt."""

    SUCCESS = "success"
    FAILURE = "failure"
    IN_PROGRESS = "in_progress"

    def is_success(self) -> bool:
        """Check if this status denotes a successful build."""
        return self is BuildStatus.SUCCESS


@dataclass(frozen=True)
class BuildRecord:
    """A single documentation build attempt, as read from storage.

    Records are rebuilt on every query and never mutated afterwards.
    """

    id: int
    rustc_version: str | None
    docsrs_version: str | None
    status: BuildStatus
    build_time: datetime | None
    errors: str | None = None


@dataclass(frozen=True)
class QueuedCrate:
    """A pending entry in the build queue."""

    id: int
    name: str
    version: str
    priority: int
    registry: str | None
    attempt: int
    date_added: datetime | None


__all__ = ["BuildRecord", "BuildStatus", "QueuedCrate"]
