"""Change notifications for queue mutations made inside a request.

Request-scoped services share the request's session, which is only
committed when the request finishes. The notifier commits first so that
subscribers reacting to an event read the new state.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from case_fetch.application.services.sse_manager import SSEManager
from case_fetch.domain.entities.queue_item import QueueItem

logger = logging.getLogger(__name__)


class ChangeNotifier:
    def __init__(
        self,
        sse_manager: SSEManager,
        commit: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._sse = sse_manager
        self._commit = commit

    async def items_changed(self, items: list[QueueItem]) -> None:
        """One ``queue_update`` event per item."""
        if not items:
            return
        await self._flush()
        for item in items:
            await self._sse.broadcast_item(item)

    async def queue_changed(
        self, action: str, affected: int, firm_id: str | None = None
    ) -> None:
        """A single ``queue_changed`` event for an action touching many rows."""
        if affected <= 0:
            return
        await self._flush()
        logger.debug("Broadcasting queue_changed (%s, %d rows)", action, affected)
        await self._sse.broadcast(
            "queue_changed",
            {"action": action, "affected": affected, "firm_id": firm_id},
        )

    async def _flush(self) -> None:
        if self._commit is not None:
            await self._commit()
