"""Domain entity for the case snapshot the fetch queue reads and writes."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from case_fetch.domain.entities.case_lookup import CaseLookupResult
from case_fetch.domain.entities.queue_item import CourtType

# Columns that only ever get populated by a successful external fetch.
FETCHED_FIELDS = (
    "fetched_data",
    "petitioner_advocate",
    "respondent_advocate",
    "advocate_name",
)


@dataclass
class CaseRecord:
    """A firm's case, reduced to the columns the fetch pipeline cares about.

    ``fetch_status`` is the raw, possibly stale status text stored on the
    case; use ``derive_status`` for the value shown to users.
    """

    case_title: str
    id: str | None = None
    firm_id: str | None = None
    case_number: str | None = None
    client_name: str | None = None
    description: str | None = None
    cnr_number: str | None = None
    court_type: CourtType | None = None
    court_name: str | None = None
    fetch_status: str | None = None
    fetch_message: str | None = None
    last_fetched_at: datetime | None = None
    petitioner_advocate: str | None = None
    respondent_advocate: str | None = None
    advocate_name: str | None = None
    fetched_data: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_fetched_data(self) -> bool:
        return any(getattr(self, name) is not None for name in FETCHED_FIELDS)

    def apply_lookup(self, result: CaseLookupResult, now: datetime | None = None) -> None:
        """Write a successful fetch onto the case."""
        now = now or datetime.now(timezone.utc)
        self.fetched_data = result.payload
        if result.petitioner_advocate is not None:
            self.petitioner_advocate = result.petitioner_advocate
        if result.respondent_advocate is not None:
            self.respondent_advocate = result.respondent_advocate
        if result.advocate_name is not None:
            self.advocate_name = result.advocate_name
        if result.court_name and not self.court_name:
            self.court_name = result.court_name
        self.fetch_status = "success"
        self.fetch_message = f"Data fetched on {now.isoformat()}"
        self.last_fetched_at = now
        self.updated_at = now

    def mark_fetch_failed(self, message: str, now: datetime | None = None) -> None:
        """Record a terminal fetch failure; previously fetched data is left alone."""
        self.fetch_status = "failed"
        self.fetch_message = message
        self.updated_at = now or datetime.now(timezone.utc)
