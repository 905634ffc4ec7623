"""Pydantic DTOs for the runtime fetch configuration."""

from pydantic import BaseModel


class FetchConfigResponse(BaseModel):
    concurrency: int
    delay_between_requests: int
    max_retries: int
    auto_retry: bool

    model_config = {"from_attributes": True}


class FetchConfigUpdate(BaseModel):
    """Partial update — out-of-range numbers are clamped, not rejected."""

    concurrency: int | None = None
    delay_between_requests: int | None = None
    max_retries: int | None = None
    auto_retry: bool | None = None
