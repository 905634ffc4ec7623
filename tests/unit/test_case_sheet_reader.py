"""Unit tests for the spreadsheet reader used by bulk import."""

import io

import pytest
from openpyxl import Workbook, load_workbook

from case_fetch.application.interfaces import TEMPLATE_COLUMNS
from case_fetch.domain.exceptions import InvalidInputError
from case_fetch.infrastructure.spreadsheets import OpenpyxlCaseSheetReader


def _xlsx(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def reader() -> OpenpyxlCaseSheetReader:
    return OpenpyxlCaseSheetReader()


def test_reads_xlsx_with_aliased_headers(reader: OpenpyxlCaseSheetReader):
    content = _xlsx(
        [
            ["Case Title", "CNR", "Court", "Client"],
            ["State vs Sharma", "MHAU010012342024", "Bombay High Court", "Rohit Sharma"],
            [None, None, None, None],
            ["Rao vs Rao", " DLND010099992023 ", "District Court", None],
        ]
    )

    rows = reader.read_rows("cases.xlsx", content)

    assert [r.row_number for r in rows] == [2, 4]
    assert rows[0].get("case_title") == "State vs Sharma"
    assert rows[0].get("forum") == "Bombay High Court"
    assert rows[0].get("client_name") == "Rohit Sharma"
    assert rows[1].get("cnr_number") == "DLND010099992023"
    assert rows[1].get("client_name") is None


def test_reads_csv_with_bom(reader: OpenpyxlCaseSheetReader):
    content = (
        "\ufeffcase_title,cnr_number,forum\n"
        "State vs Sharma,MHAU010012342024,High Court\n"
        ",,\n"
        "Missing forum,MHAU010012342025,\n"
    ).encode("utf-8")

    rows = reader.read_rows("cases.CSV", content)

    assert len(rows) == 2
    assert rows[0].get("case_title") == "State vs Sharma"
    assert rows[1].row_number == 4
    assert rows[1].get("forum") is None


def test_rejects_unsupported_extension(reader: OpenpyxlCaseSheetReader):
    with pytest.raises(InvalidInputError):
        reader.read_rows("cases.pdf", b"%PDF-1.4")


def test_rejects_unreadable_workbook(reader: OpenpyxlCaseSheetReader):
    with pytest.raises(InvalidInputError):
        reader.read_rows("cases.xlsx", b"definitely not a zip archive")


def test_rejects_sheet_without_known_headers(reader: OpenpyxlCaseSheetReader):
    with pytest.raises(InvalidInputError):
        reader.read_rows("cases.csv", b"foo,bar\n1,2\n")


def test_template_round_trips_through_reader(reader: OpenpyxlCaseSheetReader):
    template = reader.build_template()

    wb = load_workbook(io.BytesIO(template))
    ws = wb.active
    assert ws.title == "Cases"
    assert [cell.value for cell in ws[1]] == list(TEMPLATE_COLUMNS)

    rows = reader.read_rows("template.xlsx", template)
    assert len(rows) == 1
    assert rows[0].get("forum") == "Bombay High Court"
