"""SQLAlchemy ORM model for case records."""

from datetime import datetime, timezone

from sqlalchemy import Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from case_fetch.infrastructure.database.base import Base, UTCDateTime


class CaseRecordModel(Base):
    """ORM model — maps to the 'cases' table (fetch-related columns only)."""

    __tablename__ = "cases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    firm_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    case_title: Mapped[str] = mapped_column(String(500), nullable=False)
    case_number: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cnr_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    court_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    court_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fetch_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    fetch_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_fetched_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    petitioner_advocate: Mapped[str | None] = mapped_column(String(500), nullable=True)
    respondent_advocate: Mapped[str | None] = mapped_column(String(500), nullable=True)
    advocate_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # none_as_null so "never fetched" is SQL NULL rather than JSON 'null'
    fetched_data: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
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
        Index("ix_cases_firm", "firm_id"),
        Index("ix_cases_cnr", "cnr_number"),
    )

    def __repr__(self) -> str:
        return f"<CaseRecordModel(id={self.id}, cnr='{self.cnr_number}')>"
