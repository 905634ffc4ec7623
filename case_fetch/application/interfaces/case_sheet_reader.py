"""Abstract interface (port) for reading case-import spreadsheets."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

TEMPLATE_COLUMNS = (
    "case_title",
    "cnr_number",
    "forum",
    "client_name",
    "case_number",
    "description",
)


@dataclass
class SheetRow:
    """One data row of an import sheet.

    ``row_number`` is the spreadsheet row (the header is row 1), so it can
    be reported back to users verbatim.
    """

    row_number: int
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, column: str) -> str | None:
        value = self.values.get(column)
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class CaseSheetReader(ABC):
    """Port for spreadsheet parsing — implemented in the infrastructure layer."""

    @abstractmethod
    def read_rows(self, filename: str, content: bytes) -> list[SheetRow]:
        """Parse an uploaded sheet into rows keyed by normalised column names.

        Raises:
            InvalidInputError: If the file type is unsupported or unreadable.
        """
        ...

    @abstractmethod
    def build_template(self) -> bytes:
        """Return an empty import template (with one example row)."""
        ...
