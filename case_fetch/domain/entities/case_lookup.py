"""Domain value object for case details returned by the court-records API."""

import re
from dataclasses import dataclass, field
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def clean_text(value: Any) -> str | None:
    """Trim and collapse whitespace; empty or missing values become None."""
    if value is None:
        return None
    text = _WHITESPACE.sub(" ", str(value)).strip()
    return text or None


def _first(*values: Any) -> str | None:
    for value in values:
        text = clean_text(value)
        if text:
            return text
    return None


@dataclass
class CaseLookupResult:
    """The subset of a court-records payload written back onto a case."""

    payload: dict[str, Any] = field(default_factory=dict)
    petitioner_advocate: str | None = None
    respondent_advocate: str | None = None
    advocate_name: str | None = None
    court_name: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CaseLookupResult":
        """Pick advocate and court fields out of a raw search payload.

        Fields may live at the top level or under ``parties``; the primary
        advocate falls back through petitioner advocate and counsel name.
        """
        parties = payload.get("parties")
        if not isinstance(parties, dict):
            parties = {}

        petitioner_advocate = _first(
            payload.get("petitioner_advocate"), parties.get("petitioner_advocate")
        )
        respondent_advocate = _first(
            payload.get("respondent_advocate"), parties.get("respondent_advocate")
        )
        advocate_name = _first(
            payload.get("advocate_name"),
            payload.get("petitioner_advocate"),
            parties.get("petitioner_advocate"),
            payload.get("counsel_name"),
        )
        return cls(
            payload=payload,
            petitioner_advocate=petitioner_advocate,
            respondent_advocate=respondent_advocate,
            advocate_name=advocate_name,
            court_name=_first(payload.get("court_name"), payload.get("court")),
        )
