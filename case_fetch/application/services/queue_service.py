"""Application service (use case) for operator actions on the fetch queue."""

import logging
from datetime import datetime, timezone

from case_fetch.application.interfaces import FetchAttemptRepository, QueueItemRepository
from case_fetch.application.services.change_notifier import ChangeNotifier
from case_fetch.domain.entities import FetchAttempt, QueueItem, QueueStatus
from case_fetch.domain.exceptions import EntityNotFoundError, InvalidInputError

logger = logging.getLogger(__name__)

STOPPED_BY_USER = "Processing stopped by user"


class QueueService:
    """Listing, stats and bulk actions (retry, clear, stop, delete)."""

    def __init__(
        self,
        repository: QueueItemRepository,
        attempt_repository: FetchAttemptRepository | None = None,
        notifier: ChangeNotifier | None = None,
    ):
        self._repository = repository
        self._attempt_repository = attempt_repository
        self._notifier = notifier

    async def get_item(self, item_id: str) -> QueueItem:
        item = await self._repository.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundError("QueueItem", item_id)
        return item

    async def list_items(
        self,
        *,
        firm_id: str | None = None,
        status: QueueStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[QueueItem]:
        return await self._repository.list_items(
            firm_id=firm_id, status=status, skip=skip, limit=limit
        )

    async def stats(self, firm_id: str | None = None) -> dict[str, int]:
        counts = await self._repository.count_by_status(firm_id)
        stats = {status.value: counts.get(status, 0) for status in QueueStatus}
        stats["total"] = sum(stats.values())
        return stats

    async def update_priority(self, item_id: str, priority: int) -> QueueItem:
        item = await self.get_item(item_id)
        if item.status != QueueStatus.QUEUED:
            raise InvalidInputError(
                f"Only queued items can be re-prioritised (item is {item.status.value})",
                field="priority",
            )
        item.priority = priority
        if await self._repository.update(item, expected_status=QueueStatus.QUEUED):
            if self._notifier:
                await self._notifier.items_changed([item])
        return item

    async def delete_items(self, item_ids: list[str]) -> int:
        deleted = await self._repository.delete_many(item_ids)
        logger.info("Deleted %d queue items", deleted)
        await self._changed("delete", deleted)
        return deleted

    async def clear_completed(self, firm_id: str | None = None) -> int:
        cleared = await self._repository.delete_completed(firm_id)
        logger.info("Cleared %d completed queue items", cleared)
        await self._changed("clear_completed", cleared, firm_id)
        return cleared

    async def retry_failed(self, firm_id: str | None = None) -> int:
        """Requeue failed items with retries left, due immediately.

        Exhausted items (``retry_count == max_retries``) are left alone.
        """
        requeued = await self._repository.requeue_failed(datetime.now(timezone.utc), firm_id)
        logger.info("Requeued %d failed queue items", requeued)
        await self._changed("retry_failed", requeued, firm_id)
        return requeued

    async def stop_processing(self, firm_id: str | None = None) -> int:
        """Fail every in-flight item so the dashboard stops showing it as running."""
        stopped = await self._repository.fail_processing(
            STOPPED_BY_USER, datetime.now(timezone.utc), firm_id
        )
        logger.info("Stopped %d processing queue items", stopped)
        await self._changed("stop", stopped, firm_id)
        return stopped

    async def case_history(self, case_id: str, limit: int = 50) -> list[FetchAttempt]:
        if self._attempt_repository is None:
            return []
        return await self._attempt_repository.list_by_case(case_id, limit=limit)

    async def _changed(self, action: str, affected: int, firm_id: str | None = None) -> None:
        if self._notifier:
            await self._notifier.queue_changed(action, affected, firm_id)
