"""Integration tests for QueueService actions and BulkImportService (SQLite)."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import DBAPIError

from case_fetch.application.interfaces import SheetRow
from case_fetch.application.schemas.queue import EnqueueItemRequest
from case_fetch.application.services import (
    BulkImportService,
    ChangeNotifier,
    EnqueueService,
    QueueService,
    SSEManager,
)
from case_fetch.domain.entities import CourtType, QueueItem, QueueStatus
from case_fetch.domain.exceptions import EntityNotFoundError, InvalidInputError
from case_fetch.infrastructure.database.repositories import (
    SQLAlchemyCaseRepository,
    SQLAlchemyFetchAttemptRepository,
    SQLAlchemyQueueItemRepository,
)
from case_fetch.infrastructure.spreadsheets import OpenpyxlCaseSheetReader


def _item(n: int, status: QueueStatus = QueueStatus.QUEUED, **overrides) -> QueueItem:
    return QueueItem(
        case_id=f"case-{n}",
        cnr_number=f"MHAU01001{n:04d}2024",
        court_type=CourtType.HIGH_COURT,
        status=status,
        **overrides,
    )


async def _seed(session_factory, items: list[QueueItem]) -> list[QueueItem]:
    async with session_factory() as session:
        created = await SQLAlchemyQueueItemRepository(session).create_many(items)
        await session.commit()
    return created


# ── QueueService ──


@pytest.mark.asyncio
async def test_stats_include_total(session_factory):
    await _seed(
        session_factory,
        [_item(1), _item(2), _item(3, QueueStatus.COMPLETED), _item(4, QueueStatus.FAILED)],
    )
    async with session_factory() as session:
        stats = await QueueService(SQLAlchemyQueueItemRepository(session)).stats()

    assert stats == {"queued": 2, "processing": 0, "completed": 1, "failed": 1, "total": 4}


@pytest.mark.asyncio
async def test_update_priority_only_for_queued_items(session_factory):
    queued, done = await _seed(session_factory, [_item(1), _item(2, QueueStatus.COMPLETED)])

    async with session_factory() as session:
        service = QueueService(SQLAlchemyQueueItemRepository(session))
        updated = await service.update_priority(queued.id, 0)
        with pytest.raises(InvalidInputError):
            await service.update_priority(done.id, 0)
        with pytest.raises(EntityNotFoundError):
            await service.get_item("missing")
        await session.commit()

    assert updated.priority == 0
    async with session_factory() as session:
        assert (await SQLAlchemyQueueItemRepository(session).get_by_id(queued.id)).priority == 0


@pytest.mark.asyncio
async def test_stop_retry_and_clear(session_factory):
    await _seed(
        session_factory,
        [
            _item(1, QueueStatus.PROCESSING, started_at=datetime.now(timezone.utc)),
            _item(2, QueueStatus.COMPLETED),
            _item(3, QueueStatus.FAILED, retry_count=3, max_retries=3),
        ],
    )

    async with session_factory() as session:
        service = QueueService(SQLAlchemyQueueItemRepository(session))
        assert await service.stop_processing() == 1
        # The stopped item has retries left, the exhausted one does not
        assert await service.retry_failed() == 1
        assert await service.clear_completed() == 1
        await session.commit()
        stats = await service.stats()

    assert stats["queued"] == 1
    assert stats["failed"] == 1
    assert stats["completed"] == 0


# ── BulkImportService ──


def _bulk_service(session) -> BulkImportService:
    case_repo = SQLAlchemyCaseRepository(session)
    return BulkImportService(
        case_repository=case_repo,
        enqueue_service=EnqueueService(SQLAlchemyQueueItemRepository(session), case_repo),
        sheet_reader=OpenpyxlCaseSheetReader(),
        savepoint=session.begin_nested,
    )


@pytest.mark.asyncio
async def test_bulk_import_reports_bad_rows_and_keeps_good_ones(session_factory):
    rows = [
        SheetRow(2, {"case_title": "State vs Sharma", "cnr_number": "MHAU010012342024", "forum": "Bombay High Court"}),
        SheetRow(3, {"case_title": "No CNR", "forum": "High Court"}),
        SheetRow(4, {"case_title": "Odd forum", "cnr_number": "DLND010099992023", "forum": "Consumer Forum"}),
        SheetRow(5, {"case_title": "Rao vs Rao", "cnr_number": "DLND010099992024", "forum": "district", "client_name": "K. Rao"}),
    ]

    async with session_factory() as session:
        report = await _bulk_service(session).import_rows(rows, firm_id="firm-1", created_by="user-7")
        await session.commit()

    assert report.success == 2
    assert report.failed == 2
    assert [e["row"] for e in report.errors] == [3, 4]
    assert report.errors[0]["message"] == "CNR number is required"

    async with session_factory() as session:
        items = await SQLAlchemyQueueItemRepository(session).list_items()
        cases = await SQLAlchemyCaseRepository(session).list_fetch_candidates()

    assert len(items) == 2
    assert {i.batch_id for i in items} == {report.batch_id}
    assert sorted(i.metadata["row"] for i in items) == [2, 5]
    assert all(i.metadata["triggered_by"] == "bulk_upload" for i in items)
    assert all(i.firm_id == "firm-1" for i in items)
    by_title = {case.case_title: case for case, _ in cases}
    assert by_title["Rao vs Rao"].court_type is CourtType.DISTRICT_COURT
    assert by_title["Rao vs Rao"].client_name == "K. Rao"


@pytest.mark.asyncio
async def test_bulk_import_with_no_valid_rows(session_factory):
    async with session_factory() as session:
        report = await _bulk_service(session).import_rows([SheetRow(2, {"case_title": "Only a title"})])

    assert (report.success, report.failed, report.batch_id) == (0, 1, None)


@pytest.mark.asyncio
async def test_case_history_is_empty_for_unknown_case(session_factory):
    async with session_factory() as session:
        service = QueueService(
            SQLAlchemyQueueItemRepository(session), SQLAlchemyFetchAttemptRepository(session)
        )
        assert await service.case_history("missing") == []


@pytest.mark.asyncio
async def test_bulk_import_over_long_values_only_fail_their_row(session_factory):
    rows = [
        SheetRow(2, {"case_title": "State vs Sharma", "cnr_number": "MHAU010012342024", "forum": "High Court"}),
        SheetRow(3, {"case_title": "Long CNR", "cnr_number": "X" * 70, "forum": "High Court"}),
        SheetRow(4, {"case_title": "T" * 501, "cnr_number": "MHAU010012352024", "forum": "High Court"}),
        SheetRow(5, {"case_title": "Rao vs Rao", "cnr_number": "DLND010099992024", "forum": "District Court"}),
    ]

    async with session_factory() as session:
        report = await _bulk_service(session).import_rows(rows)
        await session.commit()

    assert (report.success, report.failed) == (2, 2)
    assert report.errors == [
        {"row": 3, "message": "CNR number must be at most 64 characters"},
        {"row": 4, "message": "Case title must be at most 500 characters"},
    ]
    async with session_factory() as session:
        assert len(await SQLAlchemyQueueItemRepository(session).list_items()) == 2


class _FlakyCaseRepository(SQLAlchemyCaseRepository):
    """Fails to store one particular case title at the database layer."""

    async def create(self, case):
        if case.case_title == "Broken row":
            raise DBAPIError("INSERT INTO cases", {}, Exception("value too long"))
        return await super().create(case)


@pytest.mark.asyncio
async def test_bulk_import_database_error_only_fails_its_row(session_factory):
    rows = [
        SheetRow(2, {"case_title": "State vs Sharma", "cnr_number": "MHAU010012342024", "forum": "High Court"}),
        SheetRow(3, {"case_title": "Broken row", "cnr_number": "MHAU010012352024", "forum": "High Court"}),
        SheetRow(4, {"case_title": "Rao vs Rao", "cnr_number": "DLND010099992024", "forum": "District Court"}),
    ]

    async with session_factory() as session:
        case_repo = _FlakyCaseRepository(session)
        service = BulkImportService(
            case_repository=case_repo,
            enqueue_service=EnqueueService(SQLAlchemyQueueItemRepository(session), case_repo),
            sheet_reader=OpenpyxlCaseSheetReader(),
            savepoint=session.begin_nested,
        )
        report = await service.import_rows(rows)
        await session.commit()

    assert (report.success, report.failed) == (2, 1)
    assert report.errors == [{"row": 3, "message": "Could not save row"}]
    async with session_factory() as session:
        items = await SQLAlchemyQueueItemRepository(session).list_items()
    assert sorted(i.metadata["row"] for i in items) == [2, 4]


# ── Change notifications ──


class _RecordingSSE(SSEManager):
    def __init__(self):
        super().__init__()
        self.events: list[tuple[str, dict]] = []

    async def broadcast(self, event_type, data):
        self.events.append((event_type, data))


@pytest.mark.asyncio
async def test_queue_actions_notify_after_commit(session_factory):
    queued, _, processing = await _seed(
        session_factory,
        [
            _item(1),
            _item(2, QueueStatus.COMPLETED),
            _item(3, QueueStatus.PROCESSING, started_at=datetime.now(timezone.utc)),
        ],
    )
    sse = _RecordingSSE()

    async with session_factory() as session:
        service = QueueService(
            SQLAlchemyQueueItemRepository(session),
            notifier=ChangeNotifier(sse, commit=session.commit),
        )
        await service.update_priority(queued.id, 1)
        await service.stop_processing()
        await service.retry_failed()
        await service.clear_completed()
        await service.delete_items([queued.id])
        # Nothing matches, so nothing is broadcast
        await service.clear_completed()

    assert [event for event, _ in sse.events] == [
        "queue_update",
        "queue_changed",
        "queue_changed",
        "queue_changed",
        "queue_changed",
    ]
    assert sse.events[0][1]["id"] == queued.id
    assert [data["action"] for _, data in sse.events[1:]] == [
        "stop",
        "retry_failed",
        "clear_completed",
        "delete",
    ]

    # The notifier committed each change before broadcasting it
    async with session_factory() as session:
        stats = await QueueService(SQLAlchemyQueueItemRepository(session)).stats()
    assert stats == {"queued": 1, "processing": 0, "completed": 0, "failed": 0, "total": 1}


@pytest.mark.asyncio
async def test_enqueue_and_bulk_import_notify(session_factory):
    sse = _RecordingSSE()

    async with session_factory() as session:
        notifier = ChangeNotifier(sse, commit=session.commit)
        case_repo = SQLAlchemyCaseRepository(session)
        enqueue = EnqueueService(SQLAlchemyQueueItemRepository(session), case_repo, notifier=notifier)
        await enqueue.enqueue(
            [
                EnqueueItemRequest(case_id="case-1", cnr_number="MHAU010012342024", court_type="high_court"),
                EnqueueItemRequest(case_id="case-2", cnr_number="DLND010099992023", court_type="district_court"),
            ]
        )
        bulk = BulkImportService(
            case_repository=case_repo,
            enqueue_service=EnqueueService(SQLAlchemyQueueItemRepository(session), case_repo),
            sheet_reader=OpenpyxlCaseSheetReader(),
            savepoint=session.begin_nested,
            notifier=notifier,
        )
        await bulk.import_rows(
            [SheetRow(2, {"case_title": "State vs Sharma", "cnr_number": "MHAU010012362024", "forum": "High Court"})],
            firm_id="firm-1",
        )

    assert [event for event, _ in sse.events] == ["queue_update", "queue_update", "queue_changed"]
    assert {data["case_id"] for _, data in sse.events[:2]} == {"case-1", "case-2"}
    assert sse.events[2][1] == {"action": "bulk_import", "affected": 1, "firm_id": "firm-1"}

    async with session_factory() as session:
        assert len(await SQLAlchemyQueueItemRepository(session).list_items()) == 3
