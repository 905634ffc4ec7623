"""Unit tests for the derived fetch status rule."""

from datetime import datetime, timezone

import pytest

from case_fetch.domain.entities import CaseLookupResult, CaseRecord, FetchStatus, derive_status


@pytest.mark.parametrize(
    "raw_status, fetched, expected",
    [
        (None, {}, FetchStatus.NOT_FETCHED),
        ("", {}, FetchStatus.NOT_FETCHED),
        ("something_else", {}, FetchStatus.NOT_FETCHED),
        ("pending", {}, FetchStatus.PENDING),
        ("pending", {"advocate_name": "A. Kulkarni"}, FetchStatus.PENDING),
        ("success", {}, FetchStatus.SUCCESS),
        ("completed", {}, FetchStatus.SUCCESS),
        (None, {"fetched_data": {"cnr": "X"}}, FetchStatus.SUCCESS),
        ("failed", {}, FetchStatus.FAILED),
        # Earlier data wins over a later failure flag
        ("failed", {"petitioner_advocate": "A. Kulkarni"}, FetchStatus.SUCCESS),
        ("failed", {"respondent_advocate": "S. Rao"}, FetchStatus.SUCCESS),
    ],
)
def test_derive_status(raw_status, fetched, expected):
    case = CaseRecord(case_title="State vs Sharma", fetch_status=raw_status, **fetched)
    assert derive_status(case) is expected


def test_apply_lookup_marks_success_and_keeps_existing_court_name():
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    case = CaseRecord(case_title="State vs Sharma", court_name="Pune District Court")
    case.apply_lookup(
        CaseLookupResult(
            payload={"cnr": "X"},
            advocate_name="A. Kulkarni",
            court_name="Some Other Court",
        ),
        now,
    )
    assert case.fetch_status == "success"
    assert case.fetched_data == {"cnr": "X"}
    assert case.advocate_name == "A. Kulkarni"
    assert case.court_name == "Pune District Court"
    assert case.last_fetched_at == now
    assert derive_status(case) is FetchStatus.SUCCESS


def test_mark_fetch_failed_keeps_previous_data():
    case = CaseRecord(case_title="State vs Sharma", fetched_data={"cnr": "X"})
    case.mark_fetch_failed("CNR number not found in eCourts system")
    assert case.fetch_status == "failed"
    assert case.fetched_data == {"cnr": "X"}
    assert derive_status(case) is FetchStatus.SUCCESS
