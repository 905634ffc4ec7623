"""Domain entity for one call against the court-records API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from case_fetch.domain.entities.queue_item import CourtType


@dataclass
class FetchAttempt:
    """Audit row for a single external lookup, successful or not."""

    case_id: str
    cnr_number: str
    court_type: CourtType
    succeeded: bool
    id: str | None = None
    queue_item_id: str | None = None
    error_message: str | None = None
    retryable: bool | None = None
    retry_attempt: int = 0
    processing_duration_ms: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> str:
        return "success" if self.succeeded else "failed"
