"""Build queue ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from cratedocs.db import Base


class QueueEntry(Base):
    """ORM model for a queued documentation build.

    Smaller priorities are built first. An entry stays pending until the
    build pipeline has used up its attempts or removes it.

    Attributes:
        id: Primary key, in insertion order.
        name: Crate name.
        version: Exact version string.
        priority: Scheduling priority (lower is more urgent).
        registry_name: Origin registry (column "registry"), None for the
            default registry.
        attempt: Number of failed build attempts so far.
        date_added: When the entry was (re)queued.
    """

    __tablename__ = "queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registry_name: Mapped[str | None] = mapped_column(
        "registry", String(255), nullable=True
    )
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_added: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("name", "version", name="uq_queue_name_version"),
    )

    def __repr__(self) -> str:
        """Return string representation of QueueEntry."""
        return (
            f"<QueueEntry(id={self.id}, name='{self.name}', "
            f"version='{self.version}', priority={self.priority}, "
            f"attempt={self.attempt})>"
        )


__all__ = ["QueueEntry"]
