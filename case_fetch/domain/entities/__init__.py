from .queue_item import (
    CourtType,
    QueueItem,
    QueueStatus,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PRIORITY,
)
from .case_lookup import CaseLookupResult, clean_text
from .case_record import CaseRecord, FETCHED_FIELDS
from .fetch_status import FetchStatus, derive_status
from .fetch_config import FetchConfig
from .fetch_attempt import FetchAttempt

__all__ = [
    "CourtType",
    "QueueItem",
    "QueueStatus",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PRIORITY",
    "CaseLookupResult",
    "clean_text",
    "CaseRecord",
    "FETCHED_FIELDS",
    "FetchStatus",
    "derive_status",
    "FetchConfig",
    "FetchAttempt",
]
