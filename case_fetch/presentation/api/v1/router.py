"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from case_fetch.presentation.api.v1.endpoints.health import router as health_router
from case_fetch.presentation.api.v1.endpoints.queue import router as queue_router
from case_fetch.presentation.api.v1.endpoints.cases import router as cases_router
from case_fetch.presentation.api.v1.endpoints.fetch_config import router as fetch_config_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(queue_router)
router.include_router(cases_router)
router.include_router(fetch_config_router)
