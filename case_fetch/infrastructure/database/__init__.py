from .base import Base
from .session import engine, async_session_factory, get_db_session
from .models import QueueItemModel, CaseRecordModel, FetchAttemptModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db_session",
    "QueueItemModel",
    "CaseRecordModel",
    "FetchAttemptModel",
]
