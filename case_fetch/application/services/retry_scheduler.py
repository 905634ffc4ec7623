"""Retry policy for failed court-data lookups."""

import logging
from datetime import datetime, timedelta, timezone

from case_fetch.domain.entities.queue_item import QueueItem
from case_fetch.domain.exceptions import CourtLookupError

logger = logging.getLogger(__name__)

# Delay before retry n (1-based): 1 min, 5 min, 15 min, 1 hour.
RETRY_DELAYS_SECONDS: tuple[int, ...] = (60, 300, 900, 3600)


class RetryScheduler:
    """Decides whether a failed item goes back to the queue, and when.

    Past the end of the table the delay keeps doubling, so the schedule is
    strictly increasing for every retry count.
    """

    def __init__(self, delays_seconds: tuple[int, ...] = RETRY_DELAYS_SECONDS):
        if not delays_seconds:
            raise ValueError("Retry delay table must not be empty")
        self._delays = delays_seconds

    def delay_for(self, retry_count: int) -> timedelta:
        """Delay before retry number ``retry_count``; retry 0 is immediate."""
        if retry_count <= 0:
            return timedelta(0)
        if retry_count <= len(self._delays):
            return timedelta(seconds=self._delays[retry_count - 1])
        overflow = retry_count - len(self._delays)
        return timedelta(seconds=self._delays[-1] * (2 ** overflow))

    def compute_next_retry(
        self, retry_count: int, now: datetime | None = None
    ) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now + self.delay_for(retry_count)

    @staticmethod
    def is_retryable(error: BaseException) -> bool:
        """Lookup errors carry their own verdict; anything unexpected is retried."""
        if isinstance(error, CourtLookupError):
            return error.retryable
        return True

    def apply_failure(
        self,
        item: QueueItem,
        error: BaseException,
        now: datetime | None = None,
    ) -> bool:
        """Record a failed attempt on ``item``.

        Returns True when the item was requeued with a future
        ``next_retry_at``, False when it is now terminally failed.
        """
        now = now or datetime.now(timezone.utc)
        message = describe_error(error)

        if self.is_retryable(error) and item.can_retry:
            item.retry_count += 1
            item.mark_requeued(
                next_retry_at=self.compute_next_retry(item.retry_count, now),
                error=message,
                now=now,
            )
            logger.info(
                "Queue item %s requeued (retry %d/%d) until %s: %s",
                item.id,
                item.retry_count,
                item.max_retries,
                item.next_retry_at.isoformat(),
                message,
            )
            return True

        # Permanent failures still count as an attempt, within the bound
        if not self.is_retryable(error) and item.can_retry:
            item.retry_count += 1
        item.mark_failed(message, now)
        logger.warning(
            "Queue item %s failed permanently after %d retries: %s",
            item.id,
            item.retry_count,
            message,
        )
        return False


def describe_error(error: BaseException) -> str:
    """User-facing text for an error recorded on a queue item."""
    if isinstance(error, CourtLookupError):
        return error.message
    text = str(error).strip()
    return text or error.__class__.__name__
