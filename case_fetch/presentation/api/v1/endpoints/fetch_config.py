"""Fetch configuration endpoints — read and tune dispatcher settings at runtime."""

from fastapi import APIRouter, Depends

from case_fetch.application.schemas.fetch_config import FetchConfigResponse, FetchConfigUpdate
from case_fetch.application.services import FetchConfigService
from case_fetch.infrastructure.dependencies import get_fetch_config_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/fetch-config", response_model=FetchConfigResponse)
async def get_fetch_config(
    service: FetchConfigService = Depends(get_fetch_config_service),
) -> FetchConfigResponse:
    """Return the configuration the next dispatcher batch will use."""
    return FetchConfigResponse.model_validate(service.get_config(), from_attributes=True)


@router.put("/fetch-config", response_model=FetchConfigResponse)
async def put_fetch_config(
    data: FetchConfigUpdate,
    service: FetchConfigService = Depends(get_fetch_config_service),
) -> FetchConfigResponse:
    """Update the configuration. Out-of-range values are clamped to the allowed range."""
    return FetchConfigResponse.model_validate(service.update_config(data), from_attributes=True)
