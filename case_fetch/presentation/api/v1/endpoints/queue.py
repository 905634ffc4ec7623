"""Fetch queue endpoints — enqueue, dispatch, operator actions and SSE."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from case_fetch.application.schemas.queue import (
    DeleteQueueItemsRequest,
    DispatchRequest,
    DispatchResultResponse,
    EnqueueRequest,
    EnqueueResponse,
    QueueActionResponse,
    QueueAllEligibleRequest,
    QueueAllEligibleResponse,
    QueueItemResponse,
    QueueItemUpdate,
    QueueStatsResponse,
)
from case_fetch.application.services import (
    EnqueueService,
    FetchConfigService,
    FetchDispatcher,
    QueueService,
    SSEManager,
)
from case_fetch.domain.entities import QueueStatus
from case_fetch.domain.exceptions import EntityNotFoundError, InvalidInputError, QueueStoreError
from case_fetch.infrastructure.dependencies import (
    get_enqueue_service,
    get_fetch_config_service,
    get_fetch_dispatcher,
    get_queue_service,
    get_sse_manager,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["Fetch Queue"])


# ── Enqueue & dispatch ──────────────────────────────────────────────


@router.post("", response_model=EnqueueResponse, status_code=status.HTTP_201_CREATED)
async def enqueue_cases(
    data: EnqueueRequest,
    service: EnqueueService = Depends(get_enqueue_service),
) -> EnqueueResponse:
    """Queue a batch of cases for fetching. Rejects the whole batch on any invalid item."""
    try:
        items = await service.enqueue(
            data.items, batch_id=data.batch_id, created_by=data.created_by
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return EnqueueResponse(
        queued=len(items),
        batch_id=items[0].batch_id if items else None,
        items=[QueueItemResponse.model_validate(i, from_attributes=True) for i in items],
    )


@router.post("/eligible", response_model=QueueAllEligibleResponse)
async def queue_all_eligible(
    data: QueueAllEligibleRequest,
    service: EnqueueService = Depends(get_enqueue_service),
) -> QueueAllEligibleResponse:
    """Queue every case with a CNR and court type that was never queued before."""
    result = await service.queue_all_eligible(firm_id=data.firm_id, created_by=data.created_by)
    return QueueAllEligibleResponse(**result)


@router.post("/process", response_model=DispatchResultResponse)
async def process_queue(
    data: DispatchRequest,
    dispatcher: FetchDispatcher = Depends(get_fetch_dispatcher),
    config_service: FetchConfigService = Depends(get_fetch_config_service),
) -> DispatchResultResponse:
    """Run one dispatcher batch now, including items waiting for a retry."""
    try:
        result = await dispatcher.process_batch(
            data.batch_size,
            data.delay_between_requests,
            config=config_service.get_config(),
        )
    except QueueStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return DispatchResultResponse(**result.to_dict())


# ── Listing ─────────────────────────────────────────────────────────


@router.get("", response_model=list[QueueItemResponse])
async def list_queue(
    status_filter: QueueStatus | None = Query(None, alias="status"),
    firm_id: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: QueueService = Depends(get_queue_service),
) -> list[QueueItemResponse]:
    """List queue items in dispatch order."""
    items = await service.list_items(
        firm_id=firm_id, status=status_filter, skip=skip, limit=limit
    )
    return [QueueItemResponse.model_validate(i, from_attributes=True) for i in items]


@router.get("/stats", response_model=QueueStatsResponse)
async def queue_stats(
    firm_id: str | None = Query(None),
    service: QueueService = Depends(get_queue_service),
) -> QueueStatsResponse:
    return QueueStatsResponse(**await service.stats(firm_id))


@router.get("/stream")
async def queue_stream(
    sse: SSEManager = Depends(get_sse_manager),
) -> StreamingResponse:
    """SSE endpoint for live queue updates.

    Clients receive ``queue_update`` events as items change state and a
    ``batch_complete`` event after every dispatcher run.
    """
    return StreamingResponse(
        sse.subscribe(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/{item_id}", response_model=QueueItemResponse)
async def get_queue_item(
    item_id: str,
    service: QueueService = Depends(get_queue_service),
) -> QueueItemResponse:
    try:
        item = await service.get_item(item_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return QueueItemResponse.model_validate(item, from_attributes=True)


# ── Operator actions ────────────────────────────────────────────────


@router.patch("/{item_id}", response_model=QueueItemResponse)
async def update_queue_item(
    item_id: str,
    data: QueueItemUpdate,
    service: QueueService = Depends(get_queue_service),
) -> QueueItemResponse:
    """Change the priority of a still-queued item."""
    try:
        item = await service.update_priority(item_id, data.priority)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return QueueItemResponse.model_validate(item, from_attributes=True)


@router.delete("", response_model=QueueActionResponse)
async def delete_queue_items(
    data: DeleteQueueItemsRequest,
    service: QueueService = Depends(get_queue_service),
) -> QueueActionResponse:
    return QueueActionResponse(affected=await service.delete_items(data.ids))


@router.post("/retry-failed", response_model=QueueActionResponse)
async def retry_failed(
    firm_id: str | None = Query(None),
    service: QueueService = Depends(get_queue_service),
) -> QueueActionResponse:
    """Requeue failed items that still have retries left."""
    return QueueActionResponse(affected=await service.retry_failed(firm_id))


@router.post("/clear-completed", response_model=QueueActionResponse)
async def clear_completed(
    firm_id: str | None = Query(None),
    service: QueueService = Depends(get_queue_service),
) -> QueueActionResponse:
    return QueueActionResponse(affected=await service.clear_completed(firm_id))


@router.post("/stop", response_model=QueueActionResponse)
async def stop_processing(
    firm_id: str | None = Query(None),
    service: QueueService = Depends(get_queue_service),
) -> QueueActionResponse:
    """Mark every in-flight item as failed ("Processing stopped by user")."""
    return QueueActionResponse(affected=await service.stop_processing(firm_id))
