"""SQLAlchemy implementation of the FetchAttemptRepository."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from case_fetch.application.interfaces.fetch_attempt_repository import FetchAttemptRepository
from case_fetch.domain.entities.fetch_attempt import FetchAttempt
from case_fetch.domain.entities.queue_item import CourtType
from case_fetch.infrastructure.database.models.fetch_attempt import FetchAttemptModel


class SQLAlchemyFetchAttemptRepository(FetchAttemptRepository):
    """Append-only attempt log backed by SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, attempt: FetchAttempt) -> FetchAttempt:
        if not attempt.id:
            attempt.id = str(uuid.uuid4())

        self._session.add(
            FetchAttemptModel(
                id=attempt.id,
                case_id=attempt.case_id,
                queue_item_id=attempt.queue_item_id,
                cnr_number=attempt.cnr_number,
                court_type=attempt.court_type.value,
                status=attempt.status,
                error_message=attempt.error_message,
                retryable=attempt.retryable,
                retry_attempt=attempt.retry_attempt,
                processing_duration_ms=attempt.processing_duration_ms,
                created_at=attempt.created_at,
            )
        )
        await self._session.flush()
        return attempt

    async def list_by_case(self, case_id: str, limit: int = 50) -> list[FetchAttempt]:
        result = await self._session.execute(
            select(FetchAttemptModel)
            .where(FetchAttemptModel.case_id == case_id)
            .order_by(FetchAttemptModel.created_at.desc())
            .limit(limit)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _to_domain(model: FetchAttemptModel) -> FetchAttempt:
        return FetchAttempt(
            id=model.id,
            case_id=model.case_id,
            queue_item_id=model.queue_item_id,
            cnr_number=model.cnr_number,
            court_type=CourtType(model.court_type),
            succeeded=model.status == "success",
            error_message=model.error_message,
            retryable=model.retryable,
            retry_attempt=model.retry_attempt,
            processing_duration_ms=model.processing_duration_ms,
            created_at=model.created_at,
        )
