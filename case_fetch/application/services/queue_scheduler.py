"""Queue Scheduler — asyncio daemon that triggers the fetch dispatcher periodically."""

import asyncio
import logging

from case_fetch.application.interfaces.fetch_config_store import FetchConfigStore
from case_fetch.application.services.fetch_dispatcher import FetchDispatcher

logger = logging.getLogger(__name__)


class QueueScheduler:
    """Runs one dispatcher batch every ``interval_seconds``.

    Runs as an asyncio.Task inside FastAPI's lifespan. The fetch config is
    re-read before every batch so operator changes apply on the next tick.
    With ``auto_retry`` off only first attempts are picked up; retries then
    wait for a manual dispatch.
    """

    def __init__(
        self,
        dispatcher: FetchDispatcher,
        config_store: FetchConfigStore,
        *,
        interval_seconds: float = 120,
        batch_size: int = 10,
    ) -> None:
        self._dispatcher = dispatcher
        self._config_store = config_store
        self._interval = interval_seconds
        self._batch_size = batch_size
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduling loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "QueueScheduler started (every %ss, batch of %d)", self._interval, self._batch_size
        )

    async def stop(self) -> None:
        """Stop the loop; an in-flight batch is cancelled and its claims go stale."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("QueueScheduler stopped")

    async def run_once(self):
        config = self._config_store.load()
        return await self._dispatcher.process_batch(
            self._batch_size,
            config=config,
            include_retries=config.auto_retry,
        )

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("QueueScheduler dispatch error")

            await asyncio.sleep(self._interval)
