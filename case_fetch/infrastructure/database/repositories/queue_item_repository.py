"""SQLAlchemy implementation of the QueueItemRepository."""

import uuid
from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from case_fetch.application.interfaces.queue_item_repository import QueueItemRepository
from case_fetch.domain.entities.queue_item import CourtType, QueueItem, QueueStatus
from case_fetch.infrastructure.database.models.queue_item import QueueItemModel

STALE_CLAIM_ERROR = "Processing interrupted before a result was saved"


class SQLAlchemyQueueItemRepository(QueueItemRepository):
    """Concrete queue repository backed by PostgreSQL (or SQLite) via SQLAlchemy.

    Every state change that can race with another dispatcher is a single
    conditional UPDATE, so two invocations never both win the same row.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, item_id: str) -> QueueItem | None:
        result = await self._session.execute(
            select(QueueItemModel).where(QueueItemModel.id == item_id)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_items(
        self,
        *,
        firm_id: str | None = None,
        status: QueueStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[QueueItem]:
        stmt = select(QueueItemModel)
        if firm_id is not None:
            stmt = stmt.where(QueueItemModel.firm_id == firm_id)
        if status is not None:
            stmt = stmt.where(QueueItemModel.status == status.value)
        stmt = (
            stmt.order_by(QueueItemModel.priority.asc(), QueueItemModel.queued_at.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count_by_status(self, firm_id: str | None = None) -> dict[QueueStatus, int]:
        stmt = select(QueueItemModel.status, func.count()).group_by(QueueItemModel.status)
        if firm_id is not None:
            stmt = stmt.where(QueueItemModel.firm_id == firm_id)
        result = await self._session.execute(stmt)
        counts = {status: 0 for status in QueueStatus}
        for raw_status, count in result.all():
            counts[QueueStatus(raw_status)] = count
        return counts

    async def create_many(self, items: list[QueueItem]) -> list[QueueItem]:
        for item in items:
            if not item.id:
                item.id = str(uuid.uuid4())
            self._session.add(
                QueueItemModel(
                    id=item.id,
                    case_id=item.case_id,
                    firm_id=item.firm_id,
                    cnr_number=item.cnr_number,
                    court_type=item.court_type.value,
                    status=item.status.value,
                    priority=item.priority,
                    retry_count=item.retry_count,
                    max_retries=item.max_retries,
                    last_error=item.last_error,
                    last_error_at=item.last_error_at,
                    queued_at=item.queued_at,
                    started_at=item.started_at,
                    completed_at=item.completed_at,
                    next_retry_at=item.next_retry_at,
                    batch_id=item.batch_id,
                    item_metadata=dict(item.metadata),
                    created_by=item.created_by,
                )
            )
        await self._session.flush()
        return items

    async def update(
        self, item: QueueItem, expected_status: QueueStatus | None = None
    ) -> bool:
        stmt = (
            update(QueueItemModel)
            .where(QueueItemModel.id == item.id)
            .values(
                status=item.status.value,
                priority=item.priority,
                retry_count=item.retry_count,
                max_retries=item.max_retries,
                last_error=item.last_error,
                last_error_at=item.last_error_at,
                started_at=item.started_at,
                completed_at=item.completed_at,
                next_retry_at=item.next_retry_at,
                item_metadata=dict(item.metadata),
            )
            .execution_options(synchronize_session=False)
        )
        if expected_status is not None:
            stmt = stmt.where(QueueItemModel.status == expected_status.value)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def claim_batch(
        self, limit: int, now: datetime, include_retries: bool = True
    ) -> list[QueueItem]:
        if limit <= 0:
            return []

        conditions = [
            QueueItemModel.status == QueueStatus.QUEUED.value,
            or_(QueueItemModel.next_retry_at.is_(None), QueueItemModel.next_retry_at <= now),
        ]
        if not include_retries:
            conditions.append(QueueItemModel.retry_count == 0)

        eligible = (
            select(QueueItemModel.id)
            .where(*conditions)
            .order_by(QueueItemModel.priority.asc(), QueueItemModel.queued_at.asc())
            .limit(limit)
        )
        if self._session.get_bind().dialect.name == "postgresql":
            # Concurrent claimers skip each other's rows instead of blocking
            eligible = eligible.with_for_update(skip_locked=True)

        stmt = (
            update(QueueItemModel)
            .where(
                QueueItemModel.id.in_(eligible.scalar_subquery()),
                QueueItemModel.status == QueueStatus.QUEUED.value,
            )
            .values(status=QueueStatus.PROCESSING.value, started_at=now, updated_at=now)
            .returning(QueueItemModel)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        claimed = [self._to_domain(m) for m in result.scalars().all()]
        # RETURNING order is unspecified
        claimed.sort(key=lambda item: (item.priority, item.queued_at))
        return claimed

    async def reclaim_stale(self, started_before: datetime, now: datetime) -> int:
        stale = (
            QueueItemModel.status == QueueStatus.PROCESSING.value,
            QueueItemModel.started_at < started_before,
        )
        # An interrupted claim counts as a retry; exhausted items fail
        exhausted = await self._session.execute(
            update(QueueItemModel)
            .where(*stale, QueueItemModel.retry_count >= QueueItemModel.max_retries)
            .values(
                status=QueueStatus.FAILED.value,
                last_error=STALE_CLAIM_ERROR,
                last_error_at=now,
                completed_at=now,
                next_retry_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        requeued = await self._session.execute(
            update(QueueItemModel)
            .where(*stale)
            .values(
                status=QueueStatus.QUEUED.value,
                started_at=None,
                retry_count=QueueItemModel.retry_count + 1,
                last_error=STALE_CLAIM_ERROR,
                last_error_at=now,
                next_retry_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return exhausted.rowcount + requeued.rowcount

    async def requeue_failed(self, now: datetime, firm_id: str | None = None) -> int:
        stmt = (
            update(QueueItemModel)
            .where(
                QueueItemModel.status == QueueStatus.FAILED.value,
                QueueItemModel.retry_count < QueueItemModel.max_retries,
            )
            .values(
                status=QueueStatus.QUEUED.value,
                next_retry_at=now,
                started_at=None,
                completed_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        if firm_id is not None:
            stmt = stmt.where(QueueItemModel.firm_id == firm_id)
        result = await self._session.execute(stmt)
        return result.rowcount

    async def fail_processing(
        self, message: str, now: datetime, firm_id: str | None = None
    ) -> int:
        stmt = (
            update(QueueItemModel)
            .where(QueueItemModel.status == QueueStatus.PROCESSING.value)
            .values(
                status=QueueStatus.FAILED.value,
                last_error=message,
                last_error_at=now,
                completed_at=now,
                next_retry_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        if firm_id is not None:
            stmt = stmt.where(QueueItemModel.firm_id == firm_id)
        result = await self._session.execute(stmt)
        return result.rowcount

    async def delete_many(self, item_ids: list[str]) -> int:
        if not item_ids:
            return 0
        result = await self._session.execute(
            delete(QueueItemModel)
            .where(QueueItemModel.id.in_(item_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_completed(self, firm_id: str | None = None) -> int:
        stmt = delete(QueueItemModel).where(
            QueueItemModel.status == QueueStatus.COMPLETED.value
        )
        if firm_id is not None:
            stmt = stmt.where(QueueItemModel.firm_id == firm_id)
        result = await self._session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _to_domain(model: QueueItemModel) -> QueueItem:
        return QueueItem(
            id=model.id,
            case_id=model.case_id,
            firm_id=model.firm_id,
            cnr_number=model.cnr_number,
            court_type=CourtType(model.court_type),
            status=QueueStatus(model.status),
            priority=model.priority,
            retry_count=model.retry_count,
            max_retries=model.max_retries,
            last_error=model.last_error,
            last_error_at=model.last_error_at,
            queued_at=model.queued_at,
            started_at=model.started_at,
            completed_at=model.completed_at,
            next_retry_at=model.next_retry_at,
            batch_id=model.batch_id,
            metadata=dict(model.item_metadata or {}),
            created_by=model.created_by,
        )
