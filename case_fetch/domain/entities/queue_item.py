"""Domain entity for case fetch queue items — database-backed work queue."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from case_fetch.domain.exceptions import InvalidInputError

DEFAULT_PRIORITY = 5
DEFAULT_MAX_RETRIES = 3


class QueueStatus(str, Enum):
    """Lifecycle states of a queue item."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CourtType(str, Enum):
    """Which court system the external API should search."""

    DISTRICT_COURT = "district_court"
    HIGH_COURT = "high_court"
    SUPREME_COURT = "supreme_court"

    @property
    def api_path(self) -> str:
        """Path segment used by the court-records search endpoints."""
        return self.value.replace("_", "-")

    @classmethod
    def from_label(cls, label: str | None) -> "CourtType":
        """Map an enum value or a free-text forum label onto a court type.

        Free text matches on the case-insensitive substrings ``high``,
        ``district`` and ``supreme`` ("Bombay High Court" -> HIGH_COURT).
        """
        text = (label or "").strip().lower()
        if not text:
            raise InvalidInputError("Court type / forum is required", field="court_type")
        try:
            return cls(text)
        except ValueError:
            pass
        if "high" in text:
            return cls.HIGH_COURT
        if "district" in text:
            return cls.DISTRICT_COURT
        if "supreme" in text:
            return cls.SUPREME_COURT
        raise InvalidInputError(
            f"Unrecognised forum '{label}' (expected High, District or Supreme Court)",
            field="court_type",
        )


@dataclass
class QueueItem:
    """One pending, running or finished fetch of a single case from the external API.

    ``retry_count`` counts additional attempts after the first, so an item
    with ``max_retries=2`` is dispatched at most three times.
    """

    case_id: str
    cnr_number: str
    court_type: CourtType
    id: str | None = None
    firm_id: str | None = None
    status: QueueStatus = QueueStatus.QUEUED
    priority: int = DEFAULT_PRIORITY
    retry_count: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES
    last_error: str | None = None
    last_error_at: datetime | None = None
    queued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    next_retry_at: datetime | None = None
    batch_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_by: str | None = None

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def mark_processing(self, now: datetime | None = None) -> None:
        """Transition to processing state (the claim)."""
        self.status = QueueStatus.PROCESSING
        self.started_at = now or datetime.now(timezone.utc)

    def mark_completed(self, now: datetime | None = None) -> None:
        """Transition to completed state."""
        self.status = QueueStatus.COMPLETED
        self.completed_at = now or datetime.now(timezone.utc)
        self.next_retry_at = None

    def mark_failed(self, error: str, now: datetime | None = None) -> None:
        """Transition to the terminal failed state."""
        now = now or datetime.now(timezone.utc)
        self.status = QueueStatus.FAILED
        self.last_error = error
        self.last_error_at = now
        self.completed_at = now
        self.next_retry_at = None

    def mark_requeued(
        self,
        next_retry_at: datetime | None = None,
        error: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Put the item back into the queue, optionally recording why and when to retry."""
        self.status = QueueStatus.QUEUED
        self.started_at = None
        self.completed_at = None
        self.next_retry_at = next_retry_at
        if error is not None:
            self.last_error = error
            self.last_error_at = now or datetime.now(timezone.utc)
