from .queue_item_repository import QueueItemRepository
from .case_repository import CaseRepository
from .fetch_attempt_repository import FetchAttemptRepository
from .court_data_client import CourtDataClient
from .fetch_config_store import FetchConfigStore
from .case_sheet_reader import CaseSheetReader, SheetRow, TEMPLATE_COLUMNS

__all__ = [
    "QueueItemRepository",
    "CaseRepository",
    "FetchAttemptRepository",
    "CourtDataClient",
    "FetchConfigStore",
    "CaseSheetReader",
    "SheetRow",
    "TEMPLATE_COLUMNS",
]
