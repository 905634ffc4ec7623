"""Pydantic DTOs for case fetch status and bulk import."""

from datetime import datetime

from pydantic import BaseModel, Field

from case_fetch.domain.entities.queue_item import DEFAULT_PRIORITY


class FetchStatusCountsResponse(BaseModel):
    """Dashboard counts per derived fetch status."""

    not_fetched: int
    success: int
    failed: int
    pending: int
    total: int


class CaseFetchStatusResponse(BaseModel):
    """A case with its derived fetch status next to the raw stored flag."""

    id: str
    case_title: str
    cnr_number: str | None
    court_type: str | None
    fetch_status: str
    raw_fetch_status: str | None
    fetch_message: str | None
    last_fetched_at: datetime | None
    advocate_name: str | None


class FetchCaseRequest(BaseModel):
    """Single-case "fetch now" request."""

    priority: int = Field(DEFAULT_PRIORITY, ge=0, le=100)
    created_by: str | None = None


class BulkImportErrorSchema(BaseModel):
    row: int
    message: str


class BulkImportReportResponse(BaseModel):
    success: int
    failed: int
    errors: list[BulkImportErrorSchema]
    batch_id: str | None
