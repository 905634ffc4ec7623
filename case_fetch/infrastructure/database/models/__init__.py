from .queue_item import QueueItemModel
from .case_record import CaseRecordModel
from .fetch_attempt import FetchAttemptModel

__all__ = [
    "QueueItemModel",
    "CaseRecordModel",
    "FetchAttemptModel",
]
