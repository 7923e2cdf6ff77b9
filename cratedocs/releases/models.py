"""Release catalog ORM models.

Crates own releases; releases own builds (see cratedocs.builds.models).
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cratedocs.db import Base

if TYPE_CHECKING:
    from cratedocs.builds.models import Build


class Crate(Base):
    """ORM model for a published crate.

    Attributes:
        id: Primary key.
        name: Crate name as published.
        created_at: Timestamp of first import.
    """

    __tablename__ = "crates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    releases: Mapped[list["Release"]] = relationship(
        "Release", back_populates="crate", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        """Return string representation of Crate."""
        return f"<Crate(id={self.id}, name='{self.name}')>"


class Release(Base):
    """ORM model for a single published version of a crate.

    Attributes:
        id: Primary key.
        crate_id: Foreign key to Crate.
        version: Exact semver version string.
        description: Optional crate description for this release.
        yanked: Whether the release was yanked from the registry.
        release_time: When the release was published.
    """

    __tablename__ = "releases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    crate_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("crates.id"), nullable=False, index=True
    )
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    yanked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    release_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    crate: Mapped["Crate"] = relationship("Crate", back_populates="releases")
    builds: Mapped[list["Build"]] = relationship(
        "Build", back_populates="release", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("crate_id", "version", name="uq_releases_crate_version"),
    )

    def __repr__(self) -> str:
        """Return string representation of Release."""
        return (
            f"<Release(id={self.id}, crate_id={self.crate_id}, "
            f"version='{self.version}', yanked={self.yanked})>"
        )


__all__ = ["Crate", "Release"]
