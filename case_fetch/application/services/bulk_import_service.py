"""Application service for spreadsheet-driven bulk case import.

Each valid row creates a case and queues it for fetching; invalid rows
are reported back with their spreadsheet row number and never abort the
rest of the import.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from case_fetch.application.interfaces import CaseRepository, CaseSheetReader, SheetRow
from case_fetch.application.schemas.queue import EnqueueItemRequest
from case_fetch.application.services.change_notifier import ChangeNotifier
from case_fetch.application.services.enqueue_service import EnqueueService
from case_fetch.domain.entities import CaseRecord, CourtType
from case_fetch.domain.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Column widths of the case and queue tables
MAX_LENGTHS = {
    "case_title": ("Case title", 500),
    "cnr_number": ("CNR number", 64),
    "forum": ("Forum", 255),
    "client_name": ("Client name", 255),
    "case_number": ("Case number", 255),
}


@dataclass
class BulkImportReport:
    success: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    batch_id: str | None = None

    def add_error(self, row: int, message: str) -> None:
        self.failed += 1
        self.errors.append({"row": row, "message": message})


class BulkImportService:
    """Turns sheet rows into cases plus queue items under one batch id."""

    def __init__(
        self,
        case_repository: CaseRepository,
        enqueue_service: EnqueueService,
        sheet_reader: CaseSheetReader,
        savepoint=None,
        notifier: ChangeNotifier | None = None,
    ):
        self._case_repository = case_repository
        self._enqueue_service = enqueue_service
        self._sheet_reader = sheet_reader
        # Optional zero-arg callable returning an async context manager
        # (e.g. ``session.begin_nested``) that scopes each row.
        self._savepoint = savepoint
        self._notifier = notifier

    def build_template(self) -> bytes:
        return self._sheet_reader.build_template()

    async def import_file(
        self,
        filename: str,
        content: bytes,
        *,
        firm_id: str | None = None,
        created_by: str | None = None,
    ) -> BulkImportReport:
        rows = self._sheet_reader.read_rows(filename, content)
        return await self.import_rows(rows, firm_id=firm_id, created_by=created_by)

    async def import_rows(
        self,
        rows: list[SheetRow],
        *,
        firm_id: str | None = None,
        created_by: str | None = None,
    ) -> BulkImportReport:
        report = BulkImportReport(batch_id=str(uuid.uuid4()))

        for row in rows:
            try:
                case_title, cnr, court_type = self._validate(row)
            except InvalidInputError as exc:
                report.add_error(row.row_number, exc.message)
                continue

            try:
                if self._savepoint is not None:
                    async with self._savepoint():
                        await self._import_row(
                            row, case_title, cnr, court_type, report.batch_id, firm_id, created_by
                        )
                else:
                    await self._import_row(
                        row, case_title, cnr, court_type, report.batch_id, firm_id, created_by
                    )
            except InvalidInputError as exc:
                report.add_error(row.row_number, exc.message)
                continue
            except ValidationError as exc:
                errors = exc.errors()
                report.add_error(row.row_number, errors[0]["msg"] if errors else str(exc))
                continue
            except SQLAlchemyError as exc:
                logger.warning("Bulk import row %d not saved: %s", row.row_number, exc)
                report.add_error(row.row_number, "Could not save row")
                continue
            report.success += 1

        logger.info(
            "Bulk import finished — %d imported, %d failed (batch %s)",
            report.success,
            report.failed,
            report.batch_id,
        )
        if report.success == 0:
            report.batch_id = None
        elif self._notifier:
            await self._notifier.queue_changed("bulk_import", report.success, firm_id)
        return report

    @staticmethod
    def _validate(row: SheetRow) -> tuple[str, str, CourtType]:
        for column, (label, limit) in MAX_LENGTHS.items():
            value = row.get(column)
            if value and len(value) > limit:
                raise InvalidInputError(
                    f"{label} must be at most {limit} characters", field=column
                )
        case_title = row.get("case_title")
        if not case_title:
            raise InvalidInputError("Case title is required", field="case_title")
        cnr = row.get("cnr_number")
        if not cnr:
            raise InvalidInputError("CNR number is required", field="cnr_number")
        forum = row.get("forum")
        if not forum:
            raise InvalidInputError("Forum is required", field="forum")
        return case_title, cnr, CourtType.from_label(forum)

    async def _import_row(
        self,
        row: SheetRow,
        case_title: str,
        cnr: str,
        court_type: CourtType,
        batch_id: str,
        firm_id: str | None,
        created_by: str | None,
    ) -> None:
        case = await self._case_repository.create(
            CaseRecord(
                case_title=case_title,
                firm_id=firm_id,
                case_number=row.get("case_number"),
                client_name=row.get("client_name"),
                description=row.get("description"),
                cnr_number=cnr,
                court_type=court_type,
                court_name=row.get("forum"),
            )
        )
        await self._enqueue_service.enqueue(
            [
                EnqueueItemRequest(
                    case_id=case.id,
                    cnr_number=cnr,
                    court_type=court_type.value,
                    metadata={"triggered_by": "bulk_upload", "row": row.row_number},
                )
            ],
            batch_id=batch_id,
            firm_id=firm_id,
            created_by=created_by,
        )
