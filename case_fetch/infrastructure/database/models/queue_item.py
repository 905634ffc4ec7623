"""SQLAlchemy ORM model for the case fetch queue."""

from datetime import datetime, timezone

from sqlalchemy import Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from case_fetch.infrastructure.database.base import Base, UTCDateTime


class QueueItemModel(Base):
    """ORM model — maps to the 'case_fetch_queue' table."""

    __tablename__ = "case_fetch_queue"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    case_id: Mapped[str] = mapped_column(String(36), nullable=False)
    firm_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    cnr_number: Mapped[str] = mapped_column(String(64), nullable=False)
    court_type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="queued")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_error_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    queued_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    next_retry_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # "metadata" is reserved on declarative classes
    item_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_case_fetch_queue_dispatch", "status", "priority", "queued_at"),
        Index("ix_case_fetch_queue_case", "case_id"),
        Index("ix_case_fetch_queue_firm_status", "firm_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<QueueItemModel(id={self.id}, cnr='{self.cnr_number}', "
            f"status='{self.status}', retries={self.retry_count}/{self.max_retries})>"
        )
