"""View models for build history.

The same BuildRecords are projected two ways:

- BuildsPage feeds the HTML builds page and keeps everything, including
  the categorical status and the error log.
- BuildApiView is the public JSON contract. It never carries the error
  log, and reports the status as a boolean under ``build_status``.
  In-progress builds never reach it either, since they are filtered at
  the store.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cratedocs.types import BuildRecord


class BuildApiView(BaseModel):
    """One build in the JSON API."""

    model_config = ConfigDict(frozen=True)

    id: int
    rustc_version: str | None
    docsrs_version: str | None
    is_success: bool = Field(serialization_alias="build_status")
    build_time: datetime | None

    @classmethod
    def from_record(cls, record: BuildRecord) -> BuildApiView:
        return cls(
            id=record.id,
            rustc_version=record.rustc_version,
            docsrs_version=record.docsrs_version,
            is_success=record.status.is_success(),
            build_time=record.build_time,
        )


class CrateMetadata(BaseModel):
    """Crate header data shown on the builds page."""

    name: str
    version: str
    req_version: str
    description: str | None = None


class BuildsPage(BaseModel):
    """View model for the HTML builds page."""

    template: str = "crate/builds.html"
    metadata: CrateMetadata
    builds: list[BuildRecord]
    canonical_url: str


def project_api(records: Iterable[BuildRecord]) -> list[dict[str, Any]]:
    """Project build records into JSON-ready API dicts, preserving order."""
    return [
        BuildApiView.from_record(record).model_dump(mode="json", by_alias=True)
        for record in records
    ]


def project_page(metadata: CrateMetadata, records: Iterable[BuildRecord]) -> BuildsPage:
    """Project build records into the builds page view model."""
    return BuildsPage(
        metadata=metadata,
        builds=list(records),
        canonical_url=f"/crate/{metadata.name}/latest/builds",
    )


__all__ = [
    "BuildApiView",
    "BuildsPage",
    "CrateMetadata",
    "project_api",
    "project_page",
]
