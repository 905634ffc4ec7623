"""Spreadsheet reader for bulk case imports — XLSX via openpyxl, CSV built-in."""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Any

from case_fetch.application.interfaces.case_sheet_reader import (
    TEMPLATE_COLUMNS,
    CaseSheetReader,
    SheetRow,
)
from case_fetch.domain.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Header spellings seen in firm spreadsheets → canonical column name.
_HEADER_ALIASES: dict[str, str] = {
    "title": "case_title",
    "case_name": "case_title",
    "cnr": "cnr_number",
    "cnr_no": "cnr_number",
    "court": "forum",
    "court_type": "forum",
    "client": "client_name",
    "case_no": "case_number",
}

_EXAMPLE_ROW = (
    "State vs Sharma",
    "MHAU010012342024",
    "Bombay High Court",
    "Rohit Sharma",
    "WP/1234/2024",
    "Writ petition against demolition notice",
)


def _normalise_header(raw: Any) -> str:
    key = re.sub(r"[^a-z0-9]+", "_", str(raw or "").strip().lower()).strip("_")
    return _HEADER_ALIASES.get(key, key)


class OpenpyxlCaseSheetReader(CaseSheetReader):
    """Infrastructure adapter that turns uploaded sheets into ``SheetRow`` lists."""

    def read_rows(self, filename: str, content: bytes) -> list[SheetRow]:
        suffix = Path(filename).suffix.lower()
        if suffix in (".xlsx", ".xlsm"):
            raw_rows = self._read_xlsx(content)
        elif suffix == ".csv":
            raw_rows = self._read_csv(content)
        else:
            raise InvalidInputError(
                f"Unsupported file type '{suffix or filename}' (use .xlsx or .csv)",
                field="file",
            )
        return self._to_sheet_rows(raw_rows)

    def build_template(self) -> bytes:
        from openpyxl import Workbook

        wb = Workbook()
        ws = wb.active
        ws.title = "Cases"
        ws.append(list(TEMPLATE_COLUMNS))
        ws.append(list(_EXAMPLE_ROW))
        buffer = io.BytesIO()
        wb.save(buffer)
        wb.close()
        return buffer.getvalue()

    @staticmethod
    def _read_xlsx(content: bytes) -> list[tuple[Any, ...]]:
        from openpyxl import load_workbook

        try:
            wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as exc:
            logger.warning("Could not open uploaded workbook: %s", exc)
            raise InvalidInputError("File is not a readable .xlsx workbook", field="file")

        try:
            ws = wb.worksheets[0]
            return [tuple(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

    @staticmethod
    def _read_csv(content: bytes) -> list[tuple[Any, ...]]:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")
        return [tuple(row) for row in csv.reader(io.StringIO(text))]

    @staticmethod
    def _to_sheet_rows(raw_rows: list[tuple[Any, ...]]) -> list[SheetRow]:
        if not raw_rows:
            raise InvalidInputError("The uploaded sheet is empty", field="file")

        headers = [_normalise_header(cell) for cell in raw_rows[0]]
        if "cnr_number" not in headers and "case_title" not in headers:
            raise InvalidInputError(
                "Header row must include case_title, cnr_number and forum columns",
                field="file",
            )

        rows: list[SheetRow] = []
        for index, raw in enumerate(raw_rows[1:], start=2):
            if all(cell is None or str(cell).strip() == "" for cell in raw):
                continue
            values = {
                header: cell
                for header, cell in zip(headers, raw)
                if header
            }
            rows.append(SheetRow(row_number=index, values=values))
        return rows
