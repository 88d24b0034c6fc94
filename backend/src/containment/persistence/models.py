"""SQLAlchemy models for spooled reports."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PendingReportModel(Base):
    """A report that was still queued when its session shut down.

    One row per fingerprint; the full entry is kept as JSON so the wire
    format and the spool format cannot drift apart.
    """

    __tablename__ = 'pending_reports'

    fingerprint: Mapped[str] = mapped_column(String(64), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    entry: Mapped[str] = mapped_column(Text, nullable=False)  # JSON serialized QueueEntry

    def __repr__(self) -> str:
        return (
            f"<PendingReportModel(fingerprint='{self.fingerprint[:12]}', "
            f"count={self.count})>"
        )
