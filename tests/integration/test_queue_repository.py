"""Integration tests for the SQLAlchemy queue repository (SQLite)."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from case_fetch.domain.entities import CourtType, QueueItem, QueueStatus
from case_fetch.infrastructure.database.repositories import SQLAlchemyQueueItemRepository
from case_fetch.infrastructure.database.repositories.queue_item_repository import STALE_CLAIM_ERROR

NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def _item(n: int, **overrides) -> QueueItem:
    data = {
        "case_id": f"case-{n}",
        "cnr_number": f"MHAU01001{n:04d}2024",
        "court_type": CourtType.HIGH_COURT,
        "queued_at": NOW + timedelta(seconds=n),
    }
    data.update(overrides)
    return QueueItem(**data)


async def _seed(session_factory, items: list[QueueItem]) -> list[QueueItem]:
    async with session_factory() as session:
        created = await SQLAlchemyQueueItemRepository(session).create_many(items)
        await session.commit()
    return created


async def _claim(session_factory, limit: int, now: datetime = NOW, **kwargs) -> list[QueueItem]:
    async with session_factory() as session:
        claimed = await SQLAlchemyQueueItemRepository(session).claim_batch(limit, now, **kwargs)
        await session.commit()
    return claimed


@pytest.mark.asyncio
async def test_claim_orders_by_priority_then_age(session_factory):
    await _seed(
        session_factory,
        [_item(1, priority=5), _item(2, priority=1), _item(3, priority=5), _item(4, priority=9)],
    )

    claimed = await _claim(session_factory, 3)

    assert [i.case_id for i in claimed] == ["case-2", "case-1", "case-3"]
    assert all(i.status == QueueStatus.PROCESSING for i in claimed)
    assert all(i.started_at == NOW for i in claimed)


@pytest.mark.asyncio
async def test_claim_respects_next_retry_at_and_status(session_factory):
    await _seed(
        session_factory,
        [
            _item(1, next_retry_at=NOW + timedelta(minutes=5), retry_count=1),
            _item(2, next_retry_at=NOW - timedelta(minutes=1), retry_count=1),
            _item(3, status=QueueStatus.FAILED),
            _item(4, status=QueueStatus.COMPLETED),
        ],
    )

    claimed = await _claim(session_factory, 10)
    assert [i.case_id for i in claimed] == ["case-2"]

    later = await _claim(session_factory, 10, now=NOW + timedelta(minutes=6))
    assert [i.case_id for i in later] == ["case-1"]


@pytest.mark.asyncio
async def test_claim_without_retries_only_takes_first_attempts(session_factory):
    await _seed(session_factory, [_item(1, retry_count=1), _item(2)])

    claimed = await _claim(session_factory, 10, include_retries=False)

    assert [i.case_id for i in claimed] == ["case-2"]


@pytest.mark.asyncio
async def test_concurrent_claims_never_share_items(session_factory):
    await _seed(session_factory, [_item(n) for n in range(1, 11)])

    first, second = await asyncio.gather(
        _claim(session_factory, 6),
        _claim(session_factory, 6),
    )

    first_ids = {i.id for i in first}
    second_ids = {i.id for i in second}
    assert first_ids.isdisjoint(second_ids)
    assert len(first_ids | second_ids) == 10


@pytest.mark.asyncio
async def test_claim_with_zero_limit(session_factory):
    await _seed(session_factory, [_item(1)])
    assert await _claim(session_factory, 0) == []


@pytest.mark.asyncio
async def test_conditional_update_loses_to_status_change(session_factory):
    (item,) = await _seed(session_factory, [_item(1)])
    (claimed,) = await _claim(session_factory, 1)

    async with session_factory() as session:
        repo = SQLAlchemyQueueItemRepository(session)
        assert await repo.fail_processing("Processing stopped by user", NOW) == 1
        claimed.mark_completed(NOW)
        assert await repo.update(claimed, expected_status=QueueStatus.PROCESSING) is False
        await session.commit()

    async with session_factory() as session:
        stored = await SQLAlchemyQueueItemRepository(session).get_by_id(item.id)
    assert stored.status == QueueStatus.FAILED
    assert stored.last_error == "Processing stopped by user"


@pytest.mark.asyncio
async def test_reclaim_stale_returns_old_claims(session_factory):
    await _seed(session_factory, [_item(1), _item(2)])
    await _claim(session_factory, 1, now=NOW - timedelta(hours=1))
    await _claim(session_factory, 1, now=NOW)

    async with session_factory() as session:
        repo = SQLAlchemyQueueItemRepository(session)
        reclaimed = await repo.reclaim_stale(NOW - timedelta(minutes=15), NOW)
        await session.commit()
        counts = await repo.count_by_status()
        (released,) = await repo.list_items(status=QueueStatus.QUEUED)

    assert reclaimed == 1
    assert counts[QueueStatus.QUEUED] == 1
    assert counts[QueueStatus.PROCESSING] == 1
    assert released.retry_count == 1
    assert released.next_retry_at == NOW
    assert released.started_at is None
    assert released.last_error == STALE_CLAIM_ERROR


@pytest.mark.asyncio
async def test_reclaim_stale_fails_items_without_retries_left(session_factory):
    (item,) = await _seed(session_factory, [_item(1, retry_count=3, max_retries=3)])
    await _claim(session_factory, 1, now=NOW - timedelta(hours=1))

    async with session_factory() as session:
        repo = SQLAlchemyQueueItemRepository(session)
        assert await repo.reclaim_stale(NOW - timedelta(minutes=15), NOW) == 1
        await session.commit()
        stored = await repo.get_by_id(item.id)

    assert stored.status == QueueStatus.FAILED
    assert stored.retry_count == 3
    assert stored.last_error == STALE_CLAIM_ERROR
    assert stored.completed_at == NOW

    # Nothing is left to release on the next pass
    async with session_factory() as session:
        assert await SQLAlchemyQueueItemRepository(session).reclaim_stale(NOW, NOW) == 0


@pytest.mark.asyncio
async def test_requeue_failed_skips_exhausted_items(session_factory):
    await _seed(
        session_factory,
        [
            _item(1, status=QueueStatus.FAILED, retry_count=1, max_retries=3),
            _item(2, status=QueueStatus.FAILED, retry_count=3, max_retries=3),
        ],
    )

    async with session_factory() as session:
        repo = SQLAlchemyQueueItemRepository(session)
        assert await repo.requeue_failed(NOW) == 1
        await session.commit()
        queued = await repo.list_items(status=QueueStatus.QUEUED)

    assert [i.case_id for i in queued] == ["case-1"]
    assert queued[0].next_retry_at == NOW


@pytest.mark.asyncio
async def test_delete_and_clear_completed(session_factory):
    items = await _seed(
        session_factory,
        [
            _item(1, status=QueueStatus.COMPLETED, firm_id="firm-1"),
            _item(2, status=QueueStatus.COMPLETED, firm_id="firm-2"),
            _item(3, firm_id="firm-1"),
        ],
    )

    async with session_factory() as session:
        repo = SQLAlchemyQueueItemRepository(session)
        assert await repo.delete_completed("firm-1") == 1
        assert await repo.delete_many([items[2].id, "no-such-id"]) == 1
        assert await repo.delete_many([]) == 0
        await session.commit()
        remaining = await repo.list_items()

    assert [i.case_id for i in remaining] == ["case-2"]


@pytest.mark.asyncio
async def test_metadata_round_trips(session_factory):
    (item,) = await _seed(
        session_factory, [_item(1, metadata={"triggered_by": "bulk_upload", "row": 7})]
    )
    async with session_factory() as session:
        stored = await SQLAlchemyQueueItemRepository(session).get_by_id(item.id)
    assert stored.metadata == {"triggered_by": "bulk_upload", "row": 7}
    assert stored.queued_at == item.queued_at
