"""Build ORM model.

This module defines the Build model storing one documentation
compilation attempt for a release.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cratedocs.db import Base
from cratedocs.types import BuildStatus

if TYPE_CHECKING:
    from cratedocs.releases.models import Release


class Build(Base):
    """ORM model for documentation build attempts.

    Attributes:
        id: Primary key, assigned in submission order.
        release_id: Foreign key to Release.
        rustc_version: Compiler version used, if known.
        docsrs_version: Doc builder version used, if known.
        build_status: success, failure or in_progress.
        build_time: When the build finished (or started, while running).
        errors: Error log of a failed build.
    """

    __tablename__ = "builds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    release_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("releases.id"), nullable=False, index=True
    )

    rustc_version: Mapped[str | None] = mapped_column(String(255), nullable=True)
    docsrs_version: Mapped[str | None] = mapped_column(String(255), nullable=True)

    build_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BuildStatus.IN_PROGRESS.value
    )
    build_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    errors: Mapped[str | None] = mapped_column(Text, nullable=True)

    release: Mapped["Release"] = relationship("Release", back_populates="builds")

    __table_args__ = (Index("ix_builds_release_status", "release_id", "build_status"),)

    def __repr__(self) -> str:
        """Return string representation of Build."""
        return (
            f"<Build(id={self.id}, release_id={self.release_id}, "
            f"build_status='{self.build_status}')>"
        )


__all__ = ["Build"]
