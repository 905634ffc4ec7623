"""Derived, user-facing fetch status of a case."""

from enum import Enum

from case_fetch.domain.entities.case_record import CaseRecord

SUCCESS_RAW_STATUSES = ("success", "completed")


class FetchStatus(str, Enum):
    NOT_FETCHED = "not_fetched"
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


def derive_status(case: CaseRecord) -> FetchStatus:
    """Compute the display status of a case from its raw columns.

    Precedence: an explicit ``pending`` wins; otherwise any previously
    fetched data (or a raw success) means success, even when the raw flag
    says ``failed``; then an explicit failure; everything else was never
    fetched. The SQL counterpart lives in the case repository and must keep
    the same order.
    """
    raw = case.fetch_status
    if raw == FetchStatus.PENDING.value:
        return FetchStatus.PENDING
    if case.has_fetched_data or raw in SUCCESS_RAW_STATUSES:
        return FetchStatus.SUCCESS
    if raw == FetchStatus.FAILED.value:
        return FetchStatus.FAILED
    return FetchStatus.NOT_FETCHED
