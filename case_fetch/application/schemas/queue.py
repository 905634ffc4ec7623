"""Pydantic DTOs for the case fetch queue."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from case_fetch.domain.entities.queue_item import DEFAULT_PRIORITY, CourtType, QueueStatus


class EnqueueItemRequest(BaseModel):
    """One case to enqueue. ``court_type`` accepts enum values or forum labels."""

    case_id: str = Field(..., min_length=1, max_length=36)
    cnr_number: str = Field(..., max_length=64, examples=["MHAU010012342024"])
    court_type: str = Field(..., examples=["high_court", "Bombay High Court"])
    priority: int = Field(DEFAULT_PRIORITY, ge=0, le=100)
    firm_id: str | None = Field(None, max_length=36)
    batch_id: str | None = Field(None, max_length=36)
    max_retries: int | None = Field(None, ge=0, le=10)
    metadata: dict[str, Any] = Field(default_factory=dict)


class EnqueueRequest(BaseModel):
    """Schema for enqueueing a set of cases as one batch."""

    items: list[EnqueueItemRequest] = Field(..., min_length=1)
    batch_id: str | None = Field(None, max_length=36)
    created_by: str | None = Field(None, max_length=255)


class QueueItemResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    case_id: str
    firm_id: str | None
    cnr_number: str
    court_type: CourtType
    status: QueueStatus
    priority: int
    retry_count: int
    max_retries: int
    last_error: str | None
    last_error_at: datetime | None
    queued_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    next_retry_at: datetime | None
    batch_id: str | None
    metadata: dict[str, Any]
    created_by: str | None

    model_config = {"from_attributes": True}


class EnqueueResponse(BaseModel):
    queued: int
    batch_id: str | None
    items: list[QueueItemResponse]


class QueueAllEligibleRequest(BaseModel):
    firm_id: str | None = None
    created_by: str | None = None


class QueueAllEligibleResponse(BaseModel):
    queued: int
    skipped: int
    batch_id: str | None = None


class QueueItemUpdate(BaseModel):
    """Only the priority of a queued item can be changed by hand."""

    priority: int = Field(..., ge=0, le=100)


class DeleteQueueItemsRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class QueueActionResponse(BaseModel):
    """Number of queue items affected by a bulk action."""

    affected: int


class QueueStatsResponse(BaseModel):
    queued: int
    processing: int
    completed: int
    failed: int
    total: int


class DispatchRequest(BaseModel):
    """Parameters for one dispatcher invocation."""

    batch_size: int = Field(10, ge=1, le=100)
    delay_between_requests: int | None = Field(
        None, ge=0, le=60000, description="Override the per-slot delay (ms)"
    )


class DispatchErrorSchema(BaseModel):
    queue_id: str
    error: str


class DispatchResultResponse(BaseModel):
    processed: int
    succeeded: int
    failed: int
    requeued: int
    errors: list[DispatchErrorSchema]


class FetchAttemptResponse(BaseModel):
    id: str
    case_id: str
    queue_item_id: str | None
    cnr_number: str
    court_type: CourtType
    status: str
    error_message: str | None
    retryable: bool | None
    retry_attempt: int
    processing_duration_ms: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
