from .queue_item_repository import SQLAlchemyQueueItemRepository
from .case_repository import SQLAlchemyCaseRepository, fetch_status_expression
from .fetch_attempt_repository import SQLAlchemyFetchAttemptRepository

__all__ = [
    "SQLAlchemyQueueItemRepository",
    "SQLAlchemyCaseRepository",
    "fetch_status_expression",
    "SQLAlchemyFetchAttemptRepository",
]
