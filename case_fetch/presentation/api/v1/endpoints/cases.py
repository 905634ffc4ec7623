"""Case-facing fetch endpoints — fetch now, derived status, history, bulk import."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from case_fetch.application.schemas.cases import (
    BulkImportReportResponse,
    CaseFetchStatusResponse,
    FetchCaseRequest,
    FetchStatusCountsResponse,
)
from case_fetch.application.schemas.queue import FetchAttemptResponse, QueueItemResponse
from case_fetch.application.services import (
    BulkImportService,
    EnqueueService,
    FetchStatusService,
    QueueService,
)
from case_fetch.domain.entities import CaseRecord, FetchStatus
from case_fetch.domain.exceptions import EntityNotFoundError, InvalidInputError
from case_fetch.infrastructure.dependencies import (
    get_bulk_import_service,
    get_enqueue_service,
    get_fetch_status_service,
    get_queue_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["Cases"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ── Helpers ──────────────────────────────────────────────────────────


def _to_status_response(case: CaseRecord, fetch_status: FetchStatus) -> CaseFetchStatusResponse:
    return CaseFetchStatusResponse(
        id=case.id,
        case_title=case.case_title,
        cnr_number=case.cnr_number,
        court_type=case.court_type.value if case.court_type else None,
        fetch_status=fetch_status.value,
        raw_fetch_status=case.fetch_status,
        fetch_message=case.fetch_message,
        last_fetched_at=case.last_fetched_at,
        advocate_name=case.advocate_name,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post(
    "/{case_id}/fetch",
    response_model=QueueItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fetch_case(
    case_id: str,
    data: FetchCaseRequest | None = None,
    service: EnqueueService = Depends(get_enqueue_service),
) -> QueueItemResponse:
    """Queue one existing case for fetching ("fetch now")."""
    data = data or FetchCaseRequest()
    try:
        item = await service.enqueue_case(
            case_id, priority=data.priority, created_by=data.created_by
        )
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return QueueItemResponse.model_validate(item, from_attributes=True)


@router.get("/fetch-status/counts", response_model=FetchStatusCountsResponse)
async def fetch_status_counts(
    firm_id: str | None = Query(None),
    service: FetchStatusService = Depends(get_fetch_status_service),
) -> FetchStatusCountsResponse:
    """Dashboard counts per derived fetch status."""
    return FetchStatusCountsResponse(**await service.counts(firm_id))


@router.get("/fetch-status", response_model=list[CaseFetchStatusResponse])
async def list_fetch_status(
    status_filter: FetchStatus | None = Query(None, alias="status"),
    firm_id: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    service: FetchStatusService = Depends(get_fetch_status_service),
) -> list[CaseFetchStatusResponse]:
    """List cases with their derived fetch status, newest first."""
    rows = await service.list_cases(
        firm_id=firm_id, status=status_filter, skip=skip, limit=limit
    )
    return [_to_status_response(case, fetch_status) for case, fetch_status in rows]


@router.get("/{case_id}/fetch-history", response_model=list[FetchAttemptResponse])
async def fetch_history(
    case_id: str,
    limit: int = Query(50, ge=1, le=200),
    service: QueueService = Depends(get_queue_service),
) -> list[FetchAttemptResponse]:
    """Every lookup attempt made for a case, newest first."""
    attempts = await service.case_history(case_id, limit=limit)
    return [FetchAttemptResponse.model_validate(a, from_attributes=True) for a in attempts]


@router.post("/import", response_model=BulkImportReportResponse)
async def import_cases(
    file: UploadFile,
    firm_id: str | None = Query(None),
    created_by: str | None = Query(None),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> BulkImportReportResponse:
    """Create cases from an .xlsx/.csv sheet and queue each one for fetching.

    Invalid rows are reported with their row number; valid rows are kept.
    """
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    try:
        report = await service.import_file(
            file.filename or "upload.xlsx",
            content,
            firm_id=firm_id,
            created_by=created_by,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return BulkImportReportResponse(
        success=report.success,
        failed=report.failed,
        errors=report.errors,
        batch_id=report.batch_id,
    )


@router.get("/import/template")
async def import_template(
    service: BulkImportService = Depends(get_bulk_import_service),
) -> Response:
    """Download the bulk import template workbook."""
    return Response(
        content=service.build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="case_import_template.xlsx"'},
    )
