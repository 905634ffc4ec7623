"""Unit tests for the SSE broadcaster."""

import asyncio
import json

import pytest

from case_fetch.application.services import SSEManager
from case_fetch.domain.entities import CourtType, QueueItem, QueueStatus


@pytest.mark.asyncio
async def test_broadcast_item_reaches_subscriber():
    sse = SSEManager()
    stream = sse.subscribe()
    next_event = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    assert sse.client_count == 1

    item = QueueItem(
        case_id="case-1",
        cnr_number="MHAU010012342024",
        court_type=CourtType.HIGH_COURT,
        id="item-1",
        status=QueueStatus.PROCESSING,
    )
    await sse.broadcast_item(item)

    message = await asyncio.wait_for(next_event, timeout=1)
    event_line, data_line, _, _ = message.split("\n")
    assert event_line == "event: queue_update"
    data = json.loads(data_line.removeprefix("data: "))
    assert data["id"] == "item-1"
    assert data["status"] == "processing"

    await sse.shutdown()
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert sse.client_count == 0


@pytest.mark.asyncio
async def test_slow_client_is_disconnected():
    sse = SSEManager(max_pending=2)
    stream = sse.subscribe()
    first = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)

    await sse.broadcast("batch_complete", {"processed": 1})
    assert (await first).startswith("event: batch_complete")

    for n in range(3):
        await sse.broadcast("batch_complete", {"processed": n})

    assert sse.client_count == 0
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
