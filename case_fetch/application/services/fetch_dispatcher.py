"""Fetch Dispatcher — drains one bounded batch of the case fetch queue.

One invocation:
    1. returns stale ``processing`` claims to the queue,
    2. atomically claims up to ``batch_size`` eligible items,
    3. calls the court-records API with at most ``concurrency`` calls in
       flight, each slot pausing between its own calls,
    4. writes every outcome (case data, queue state, attempt log) in its
       own transaction.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from case_fetch.application.interfaces.court_data_client import CourtDataClient
from case_fetch.application.services.retry_scheduler import RetryScheduler, describe_error
from case_fetch.application.services.sse_manager import SSEManager
from case_fetch.domain.entities.case_lookup import CaseLookupResult
from case_fetch.domain.entities.fetch_attempt import FetchAttempt
from case_fetch.domain.entities.fetch_config import FetchConfig
from case_fetch.domain.entities.queue_item import QueueItem, QueueStatus
from case_fetch.domain.exceptions import (
    CourtLookupError,
    QueueStoreError,
    TransientLookupError,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Summary of one dispatcher invocation.

    ``failed`` counts every failed attempt; ``requeued`` is the subset that
    was scheduled for another try.
    """

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    requeued: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "requeued": self.requeued,
            "errors": list(self.errors),
        }


class FetchDispatcher:
    """Runs bounded, rate-limited batches of external case lookups.

    Holds no state between invocations; the queue table is the only shared
    resource, so several dispatchers (or processes) may run side by side.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        court_client: CourtDataClient,
        retry_scheduler: RetryScheduler | None = None,
        sse_manager: SSEManager | None = None,
        *,
        lookup_timeout: float = 30.0,
        stale_claim_minutes: int = 15,
        error_limit: int = 50,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._court_client = court_client
        self._retry = retry_scheduler or RetryScheduler()
        self._sse = sse_manager
        self._lookup_timeout = lookup_timeout
        self._stale_after = timedelta(minutes=stale_claim_minutes)
        self._error_limit = error_limit
        self._sleep = sleep

    async def process_batch(
        self,
        batch_size: int = 10,
        inter_request_delay_ms: int | None = None,
        *,
        config: FetchConfig | None = None,
        include_retries: bool = True,
    ) -> DispatchResult:
        """Claim and process up to ``batch_size`` queued items.

        Individual item failures never raise; they are recorded on the item
        and reported in the result. Raises ``QueueStoreError`` only when the
        queue cannot be read or claimed at all.
        """
        config = config or FetchConfig()
        delay_ms = (
            config.delay_between_requests
            if inter_request_delay_ms is None
            else inter_request_delay_ms
        )

        claimed = await self._claim(batch_size, include_retries)
        result = DispatchResult()
        if not claimed:
            logger.debug("No eligible queue items — nothing to dispatch")
            return result

        logger.info(
            "Dispatching %d queue items (concurrency=%d, delay=%dms)",
            len(claimed),
            config.concurrency,
            delay_ms,
        )
        for item in claimed:
            await self._broadcast(item)

        work: asyncio.Queue[QueueItem] = asyncio.Queue()
        for item in claimed:
            work.put_nowait(item)

        slots = max(1, min(config.concurrency, len(claimed)))
        await asyncio.gather(
            *(self._run_slot(work, delay_ms, result) for _ in range(slots))
        )

        logger.info(
            "Dispatch finished — processed=%d succeeded=%d failed=%d requeued=%d",
            result.processed,
            result.succeeded,
            result.failed,
            result.requeued,
        )
        if self._sse:
            await self._sse.broadcast("batch_complete", result.to_dict())
        return result

    async def _claim(self, batch_size: int, include_retries: bool) -> list[QueueItem]:
        from case_fetch.infrastructure.database.repositories import SQLAlchemyQueueItemRepository

        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                repo = SQLAlchemyQueueItemRepository(session)
                reclaimed = await repo.reclaim_stale(now - self._stale_after, now)
                if reclaimed:
                    logger.warning("Released %d stale processing claims", reclaimed)
                claimed = await repo.claim_batch(
                    batch_size, now=now, include_retries=include_retries
                )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Could not claim queue items")
            raise QueueStoreError(f"Queue store unavailable: {exc}") from exc
        return claimed

    async def _run_slot(
        self,
        work: "asyncio.Queue[QueueItem]",
        delay_ms: int,
        result: DispatchResult,
    ) -> None:
        """One concurrency slot: take items in claim order, pausing between calls."""
        first = True
        while True:
            try:
                item = work.get_nowait()
            except asyncio.QueueEmpty:
                return
            if not first and delay_ms > 0:
                await self._sleep(delay_ms / 1000)
            first = False
            await self._process_item(item, result)

    async def _process_item(self, item: QueueItem, result: DispatchResult) -> None:
        started = time.monotonic()
        lookup: CaseLookupResult | None = None
        error: BaseException | None = None
        try:
            lookup = await asyncio.wait_for(
                self._court_client.lookup(item.cnr_number, item.court_type),
                timeout=self._lookup_timeout,
            )
        except asyncio.TimeoutError:
            error = TransientLookupError("API_TIMEOUT", "eCourts API timed out")
        except Exception as exc:
            error = exc
            if not isinstance(exc, CourtLookupError):
                logger.exception("Unexpected error looking up %s", item.cnr_number)
        duration_ms = int((time.monotonic() - started) * 1000)

        result.processed += 1
        try:
            if error is None:
                item = await self._record_success(item, lookup, duration_ms)
                result.succeeded += 1
            else:
                item, requeued = await self._record_failure(item, error, duration_ms)
                result.failed += 1
                if requeued:
                    result.requeued += 1
                self._add_error(result, item, describe_error(error))
        except SQLAlchemyError as exc:
            # The claim stays in processing and is reclaimed once stale
            logger.exception("Could not record outcome for queue item %s", item.id)
            result.failed += 1
            self._add_error(result, item, f"Could not save result: {exc.__class__.__name__}")
            return

        await self._broadcast(item)

    async def _record_success(
        self, item: QueueItem, lookup: CaseLookupResult, duration_ms: int
    ) -> QueueItem:
        from case_fetch.infrastructure.database.repositories import (
            SQLAlchemyCaseRepository,
            SQLAlchemyFetchAttemptRepository,
            SQLAlchemyQueueItemRepository,
        )

        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            case_repo = SQLAlchemyCaseRepository(session)
            case = await case_repo.get_by_id(item.case_id)
            if case is None:
                logger.warning(
                    "Case %s for queue item %s no longer exists — result discarded",
                    item.case_id,
                    item.id,
                )
            else:
                case.apply_lookup(lookup, now)
                await case_repo.update(case)

            item.mark_completed(now)
            updated = await SQLAlchemyQueueItemRepository(session).update(
                item, expected_status=QueueStatus.PROCESSING
            )
            if not updated:
                logger.info("Queue item %s changed while in flight — keeping its state", item.id)
                item = await self._current_state(session, item)

            await SQLAlchemyFetchAttemptRepository(session).create(
                FetchAttempt(
                    case_id=item.case_id,
                    queue_item_id=item.id,
                    cnr_number=item.cnr_number,
                    court_type=item.court_type,
                    succeeded=True,
                    retry_attempt=item.retry_count,
                    processing_duration_ms=duration_ms,
                    created_at=now,
                )
            )
            await session.commit()
        logger.info("Fetched case data for %s (queue item %s)", item.cnr_number, item.id)
        return item

    async def _record_failure(
        self, item: QueueItem, error: BaseException, duration_ms: int
    ) -> tuple[QueueItem, bool]:
        """Write a failed attempt. Returns the item as stored and whether it was requeued."""
        from case_fetch.infrastructure.database.repositories import (
            SQLAlchemyCaseRepository,
            SQLAlchemyFetchAttemptRepository,
            SQLAlchemyQueueItemRepository,
        )

        now = datetime.now(timezone.utc)
        attempt_number = item.retry_count
        requeued = self._retry.apply_failure(item, error, now)
        error_message = item.last_error

        async with self._session_factory() as session:
            updated = await SQLAlchemyQueueItemRepository(session).update(
                item, expected_status=QueueStatus.PROCESSING
            )
            if not updated:
                logger.info("Queue item %s changed while in flight — keeping its state", item.id)
                requeued = False
                item = await self._current_state(session, item)
            elif not requeued:
                case_repo = SQLAlchemyCaseRepository(session)
                case = await case_repo.get_by_id(item.case_id)
                if case is not None:
                    case.mark_fetch_failed(error_message or describe_error(error), now)
                    await case_repo.update(case)

            await SQLAlchemyFetchAttemptRepository(session).create(
                FetchAttempt(
                    case_id=item.case_id,
                    queue_item_id=item.id,
                    cnr_number=item.cnr_number,
                    court_type=item.court_type,
                    succeeded=False,
                    error_message=error_message,
                    retryable=self._retry.is_retryable(error),
                    retry_attempt=attempt_number,
                    processing_duration_ms=duration_ms,
                    created_at=now,
                )
            )
            await session.commit()
        return item, requeued

    @staticmethod
    async def _current_state(session: AsyncSession, item: QueueItem) -> QueueItem:
        from case_fetch.infrastructure.database.repositories import SQLAlchemyQueueItemRepository

        stored = await SQLAlchemyQueueItemRepository(session).get_by_id(item.id)
        return stored or item

    def _add_error(self, result: DispatchResult, item: QueueItem, message: str) -> None:
        if len(result.errors) < self._error_limit:
            result.errors.append({"queue_id": item.id, "error": message})

    async def _broadcast(self, item: QueueItem) -> None:
        if self._sse:
            await self._sse.broadcast_item(item)
