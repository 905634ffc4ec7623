"""SQLAlchemy implementation of the CaseRepository."""

import uuid

from sqlalchemy import case, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from case_fetch.application.interfaces.case_repository import CaseRepository
from case_fetch.domain.entities.case_record import FETCHED_FIELDS, CaseRecord
from case_fetch.domain.entities.fetch_status import SUCCESS_RAW_STATUSES, FetchStatus
from case_fetch.domain.entities.queue_item import CourtType
from case_fetch.infrastructure.database.models.case_record import CaseRecordModel
from case_fetch.infrastructure.database.models.queue_item import QueueItemModel


def fetch_status_expression():
    """SQL CASE computing the derived fetch status of a case row.

    Same precedence as ``derive_status``: pending, then fetched data or a
    raw success, then failed, else not fetched.
    """
    has_fetched_data = or_(
        *(getattr(CaseRecordModel, name).is_not(None) for name in FETCHED_FIELDS)
    )
    return case(
        (CaseRecordModel.fetch_status == FetchStatus.PENDING.value, FetchStatus.PENDING.value),
        (
            or_(has_fetched_data, CaseRecordModel.fetch_status.in_(SUCCESS_RAW_STATUSES)),
            FetchStatus.SUCCESS.value,
        ),
        (CaseRecordModel.fetch_status == FetchStatus.FAILED.value, FetchStatus.FAILED.value),
        else_=FetchStatus.NOT_FETCHED.value,
    )


class SQLAlchemyCaseRepository(CaseRepository):
    """Concrete case repository backed by PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, case_id: str) -> CaseRecord | None:
        model = await self._get_model(case_id)
        return self._to_domain(model) if model else None

    async def create(self, record: CaseRecord) -> CaseRecord:
        if not record.id:
            record.id = str(uuid.uuid4())

        model = CaseRecordModel(id=record.id, created_at=record.created_at)
        self._apply(model, record)
        self._session.add(model)
        await self._session.flush()
        return record

    async def update(self, record: CaseRecord) -> CaseRecord:
        model = await self._get_model(record.id)
        if model is None:
            raise ValueError(f"Case with id {record.id} not found")

        self._apply(model, record)
        await self._session.flush()
        return record

    async def count_by_fetch_status(
        self, firm_id: str | None = None
    ) -> dict[FetchStatus, int]:
        derived = select(fetch_status_expression().label("derived_status"))
        if firm_id is not None:
            derived = derived.where(CaseRecordModel.firm_id == firm_id)
        derived = derived.subquery()
        result = await self._session.execute(
            select(derived.c.derived_status, func.count()).group_by(derived.c.derived_status)
        )

        counts = {status: 0 for status in FetchStatus}
        for raw_status, count in result.all():
            counts[FetchStatus(raw_status)] = count
        return counts

    async def list_with_fetch_status(
        self,
        *,
        firm_id: str | None = None,
        status: FetchStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[CaseRecord, FetchStatus]]:
        status_expr = fetch_status_expression()
        stmt = select(CaseRecordModel, status_expr.label("derived_status"))
        if firm_id is not None:
            stmt = stmt.where(CaseRecordModel.firm_id == firm_id)
        if status is not None:
            stmt = stmt.where(status_expr == status.value)
        stmt = (
            stmt.order_by(CaseRecordModel.created_at.desc(), CaseRecordModel.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            (self._to_domain(model), FetchStatus(derived))
            for model, derived in result.all()
        ]

    async def list_fetch_candidates(
        self, firm_id: str | None = None
    ) -> list[tuple[CaseRecord, bool]]:
        already_queued = (
            exists().where(QueueItemModel.case_id == CaseRecordModel.id).label("already_queued")
        )
        stmt = select(CaseRecordModel, already_queued).where(
            CaseRecordModel.cnr_number.is_not(None),
            CaseRecordModel.cnr_number != "",
            CaseRecordModel.court_type.in_([c.value for c in CourtType]),
        )
        if firm_id is not None:
            stmt = stmt.where(CaseRecordModel.firm_id == firm_id)
        result = await self._session.execute(stmt.order_by(CaseRecordModel.created_at.asc()))
        return [(self._to_domain(model), bool(queued)) for model, queued in result.all()]

    async def _get_model(self, case_id: str | None) -> CaseRecordModel | None:
        result = await self._session.execute(
            select(CaseRecordModel).where(CaseRecordModel.id == case_id)
        )
        return result.scalar_one_or_none()

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _apply(model: CaseRecordModel, record: CaseRecord) -> None:
        model.firm_id = record.firm_id
        model.case_title = record.case_title
        model.case_number = record.case_number
        model.client_name = record.client_name
        model.description = record.description
        model.cnr_number = record.cnr_number
        model.court_type = record.court_type.value if record.court_type else None
        model.court_name = record.court_name
        model.fetch_status = record.fetch_status
        model.fetch_message = record.fetch_message
        model.last_fetched_at = record.last_fetched_at
        model.petitioner_advocate = record.petitioner_advocate
        model.respondent_advocate = record.respondent_advocate
        model.advocate_name = record.advocate_name
        model.fetched_data = record.fetched_data
        model.updated_at = record.updated_at

    @staticmethod
    def _to_domain(model: CaseRecordModel) -> CaseRecord:
        court_type = None
        if model.court_type:
            try:
                court_type = CourtType(model.court_type)
            except ValueError:
                court_type = None
        return CaseRecord(
            id=model.id,
            firm_id=model.firm_id,
            case_title=model.case_title,
            case_number=model.case_number,
            client_name=model.client_name,
            description=model.description,
            cnr_number=model.cnr_number,
            court_type=court_type,
            court_name=model.court_name,
            fetch_status=model.fetch_status,
            fetch_message=model.fetch_message,
            last_fetched_at=model.last_fetched_at,
            petitioner_advocate=model.petitioner_advocate,
            respondent_advocate=model.respondent_advocate,
            advocate_name=model.advocate_name,
            fetched_data=model.fetched_data,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
