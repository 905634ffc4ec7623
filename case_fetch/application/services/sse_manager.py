"""SSE Manager — in-process event broadcaster for live fetch-queue updates."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any

from case_fetch.domain.entities.queue_item import QueueItem

logger = logging.getLogger(__name__)


class SSEManager:
    """Manages SSE client connections and broadcasts queue changes.

    Each connected client gets its own bounded asyncio.Queue. Broadcasting
    pushes the event to all queues; a client that falls ``max_pending``
    events behind is disconnected instead of growing memory without bound.
    """

    def __init__(self, max_pending: int = 1000) -> None:
        self._max_pending = max_pending
        self._queues: list[asyncio.Queue[str | None]] = []

    async def subscribe(self) -> AsyncGenerator[str, None]:
        """Subscribe to SSE events. Yields formatted SSE strings.

        The generator automatically unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self._max_pending)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    async def broadcast(self, event_type: str, data: dict[str, Any]) -> None:
        """Broadcast an SSE event to all connected clients."""
        sse_message = f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE client queue full — disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            # Make room for the sentinel so the subscriber loop ends
            while not q.empty():
                q.get_nowait()
            q.put_nowait(None)

    async def broadcast_item(self, item: QueueItem) -> None:
        """Broadcast a ``queue_update`` event for one queue item."""
        await self.broadcast(
            "queue_update",
            {
                "id": item.id,
                "case_id": item.case_id,
                "firm_id": item.firm_id,
                "cnr_number": item.cnr_number,
                "status": item.status.value,
                "retry_count": item.retry_count,
                "max_retries": item.max_retries,
                "last_error": item.last_error,
                "next_retry_at": item.next_retry_at.isoformat() if item.next_retry_at else None,
                "completed_at": item.completed_at.isoformat() if item.completed_at else None,
            },
        )

    async def shutdown(self) -> None:
        """Disconnect all connected clients."""
        for queue in self._queues:
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(None)
        self._queues.clear()

    @property
    def client_count(self) -> int:
        return len(self._queues)
