from .queue import (
    EnqueueItemRequest,
    EnqueueRequest,
    EnqueueResponse,
    QueueItemResponse,
    QueueAllEligibleRequest,
    QueueAllEligibleResponse,
    QueueItemUpdate,
    DeleteQueueItemsRequest,
    QueueActionResponse,
    QueueStatsResponse,
    DispatchRequest,
    DispatchErrorSchema,
    DispatchResultResponse,
    FetchAttemptResponse,
)
from .cases import (
    FetchStatusCountsResponse,
    CaseFetchStatusResponse,
    FetchCaseRequest,
    BulkImportErrorSchema,
    BulkImportReportResponse,
)
from .fetch_config import FetchConfigResponse, FetchConfigUpdate

__all__ = [
    "EnqueueItemRequest",
    "EnqueueRequest",
    "EnqueueResponse",
    "QueueItemResponse",
    "QueueAllEligibleRequest",
    "QueueAllEligibleResponse",
    "QueueItemUpdate",
    "DeleteQueueItemsRequest",
    "QueueActionResponse",
    "QueueStatsResponse",
    "DispatchRequest",
    "DispatchErrorSchema",
    "DispatchResultResponse",
    "FetchAttemptResponse",
    "FetchStatusCountsResponse",
    "CaseFetchStatusResponse",
    "FetchCaseRequest",
    "BulkImportErrorSchema",
    "BulkImportReportResponse",
    "FetchConfigResponse",
    "FetchConfigUpdate",
]
