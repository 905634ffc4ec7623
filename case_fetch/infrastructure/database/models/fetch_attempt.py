"""SQLAlchemy ORM model for the fetch attempt log."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from case_fetch.infrastructure.database.base import Base, UTCDateTime


class FetchAttemptModel(Base):
    """ORM model — maps to the 'case_fetch_attempts' table."""

    __tablename__ = "case_fetch_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    case_id: Mapped[str] = mapped_column(String(36), nullable=False)
    queue_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    cnr_number: Mapped[str] = mapped_column(String(64), nullable=False)
    court_type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    retryable: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    retry_attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_case_fetch_attempts_case_created", "case_id", "created_at"),
    )
