from .retry_scheduler import RetryScheduler
from .sse_manager import SSEManager
from .change_notifier import ChangeNotifier
from .fetch_dispatcher import DispatchResult, FetchDispatcher
from .fetch_config_service import FetchConfigService
from .enqueue_service import EnqueueService
from .queue_service import QueueService
from .fetch_status_service import FetchStatusService
from .bulk_import_service import BulkImportReport, BulkImportService
from .queue_scheduler import QueueScheduler

__all__ = [
    "RetryScheduler",
    "SSEManager",
    "ChangeNotifier",
    "DispatchResult",
    "FetchDispatcher",
    "FetchConfigService",
    "EnqueueService",
    "QueueService",
    "FetchStatusService",
    "BulkImportReport",
    "BulkImportService",
    "QueueScheduler",
]
