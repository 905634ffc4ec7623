"""Abstract repository interface (port) for the case fetch queue."""

from abc import ABC, abstractmethod
from datetime import datetime

from case_fetch.domain.entities.queue_item import QueueItem, QueueStatus


class QueueItemRepository(ABC):
    """Port for queue persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, item_id: str) -> QueueItem | None:
        """Retrieve a single queue item by ID."""
        ...

    @abstractmethod
    async def list_items(
        self,
        *,
        firm_id: str | None = None,
        status: QueueStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[QueueItem]:
        """Retrieve queue items in dispatch order (priority, then queued_at)."""
        ...

    @abstractmethod
    async def count_by_status(self, firm_id: str | None = None) -> dict[QueueStatus, int]:
        """Count items per status. Missing statuses are reported as 0."""
        ...

    @abstractmethod
    async def create_many(self, items: list[QueueItem]) -> list[QueueItem]:
        """Persist new items and return them with generated IDs."""
        ...

    @abstractmethod
    async def update(
        self, item: QueueItem, expected_status: QueueStatus | None = None
    ) -> bool:
        """Write the item back. With ``expected_status`` the write only applies
        while the stored row still has that status. Returns whether a row changed."""
        ...

    @abstractmethod
    async def claim_batch(
        self, limit: int, now: datetime, include_retries: bool = True
    ) -> list[QueueItem]:
        """Atomically move up to ``limit`` eligible queued items to processing.

        Eligible means queued with no ``next_retry_at`` or one in the past;
        with ``include_retries=False`` only never-retried items qualify.
        Returned in claim order (priority ASC, queued_at ASC).
        """
        ...

    @abstractmethod
    async def reclaim_stale(self, started_before: datetime, now: datetime) -> int:
        """Release processing items claimed before ``started_before``.

        Each release uses up one retry: items with retries left go back to
        the queue, due at ``now``; exhausted items are failed. Returns the
        number of items released.
        """
        ...

    @abstractmethod
    async def requeue_failed(self, now: datetime, firm_id: str | None = None) -> int:
        """Move failed items that still have retries left back to queued, due now."""
        ...

    @abstractmethod
    async def fail_processing(
        self, message: str, now: datetime, firm_id: str | None = None
    ) -> int:
        """Mark every processing item as failed with ``message``."""
        ...

    @abstractmethod
    async def delete_many(self, item_ids: list[str]) -> int:
        """Delete items by ID. Returns number of deleted rows."""
        ...

    @abstractmethod
    async def delete_completed(self, firm_id: str | None = None) -> int:
        """Delete completed items only. Returns number of deleted rows."""
        ...
