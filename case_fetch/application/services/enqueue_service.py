"""Application service (use case) for putting cases on the fetch queue."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from case_fetch.application.interfaces import (
    CaseRepository,
    FetchConfigStore,
    QueueItemRepository,
)
from case_fetch.application.schemas.queue import EnqueueItemRequest
from case_fetch.application.services.change_notifier import ChangeNotifier
from case_fetch.domain.entities import DEFAULT_PRIORITY, CourtType, QueueItem
from case_fetch.domain.exceptions import EntityNotFoundError, InvalidInputError

logger = logging.getLogger(__name__)


class EnqueueService:
    """Validates enqueue requests and inserts queued items.

    Duplicate submissions for the same case are accepted; callers that need
    at-most-once queueing use ``queue_all_eligible``.
    """

    def __init__(
        self,
        queue_repository: QueueItemRepository,
        case_repository: CaseRepository,
        config_store: FetchConfigStore | None = None,
        notifier: ChangeNotifier | None = None,
    ):
        self._queue_repository = queue_repository
        self._case_repository = case_repository
        self._config_store = config_store
        self._notifier = notifier

    async def enqueue(
        self,
        items: list[EnqueueItemRequest],
        *,
        batch_id: str | None = None,
        firm_id: str | None = None,
        created_by: str | None = None,
    ) -> list[QueueItem]:
        """Insert one queued item per request, all or nothing.

        Raises:
            InvalidInputError: If any item lacks a CNR or has an unknown court type.
        """
        if not items:
            return []

        validated: list[tuple[EnqueueItemRequest, str, CourtType]] = []
        for index, request in enumerate(items):
            cnr = request.cnr_number.strip()
            if not cnr:
                raise InvalidInputError(
                    f"Item {index + 1}: CNR number is required", field="cnr_number"
                )
            try:
                court_type = CourtType.from_label(request.court_type)
            except InvalidInputError as exc:
                raise InvalidInputError(f"Item {index + 1}: {exc.message}", field=exc.field)
            validated.append((request, cnr, court_type))

        default_max_retries = (
            self._config_store.load().max_retries if self._config_store else None
        )
        shared_batch_id = batch_id or str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        queue_items: list[QueueItem] = []
        for offset, (request, cnr, court_type) in enumerate(validated):
            item = QueueItem(
                case_id=request.case_id,
                cnr_number=cnr,
                court_type=court_type,
                firm_id=request.firm_id or firm_id,
                priority=request.priority,
                # Strictly increasing so equal priorities keep submission order
                queued_at=now + timedelta(microseconds=offset),
                batch_id=request.batch_id or shared_batch_id,
                metadata=dict(request.metadata),
                created_by=created_by,
            )
            if request.max_retries is not None:
                item.max_retries = request.max_retries
            elif default_max_retries is not None:
                item.max_retries = default_max_retries
            queue_items.append(item)

        created = await self._queue_repository.create_many(queue_items)
        logger.info("Enqueued %d cases (batch %s)", len(created), shared_batch_id)
        if self._notifier:
            await self._notifier.items_changed(created)
        return created

    async def enqueue_case(
        self,
        case_id: str,
        *,
        priority: int = DEFAULT_PRIORITY,
        created_by: str | None = None,
    ) -> QueueItem:
        """Queue a single existing case ("fetch now")."""
        case = await self._case_repository.get_by_id(case_id)
        if case is None:
            raise EntityNotFoundError("Case", case_id)
        if not case.cnr_number:
            raise InvalidInputError("Case has no CNR number", field="cnr_number")
        if case.court_type is None:
            raise InvalidInputError("Case has no court type", field="court_type")

        items = await self.enqueue(
            [
                EnqueueItemRequest(
                    case_id=case.id,
                    cnr_number=case.cnr_number,
                    court_type=case.court_type.value,
                    priority=priority,
                    metadata={"triggered_by": "manual"},
                )
            ],
            firm_id=case.firm_id,
            created_by=created_by,
        )
        return items[0]

    async def queue_all_eligible(
        self,
        firm_id: str | None = None,
        created_by: str | None = None,
    ) -> dict:
        """Queue every case with a CNR and court type that has never been queued.

        Returns ``{"queued": n, "skipped": m, "batch_id": ...}`` where skipped
        counts eligible cases that already had a queue item.
        """
        candidates = await self._case_repository.list_fetch_candidates(firm_id)
        new_cases = [
            case
            for case, already_queued in candidates
            if not already_queued and case.cnr_number.strip()
        ]
        skipped = len(candidates) - len(new_cases)
        if not new_cases:
            return {"queued": 0, "skipped": skipped, "batch_id": None}

        batch_id = str(uuid.uuid4())
        await self.enqueue(
            [
                EnqueueItemRequest(
                    case_id=case.id,
                    cnr_number=case.cnr_number,
                    court_type=case.court_type.value,
                    firm_id=case.firm_id,
                    metadata={"triggered_by": "queue_all_eligible"},
                )
                for case in new_cases
            ],
            batch_id=batch_id,
            firm_id=firm_id,
            created_by=created_by,
        )
        return {"queued": len(new_cases), "skipped": skipped, "batch_id": batch_id}
