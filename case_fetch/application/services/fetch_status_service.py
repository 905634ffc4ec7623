"""Read-side queries over the derived fetch status of cases."""

from case_fetch.application.interfaces import CaseRepository
from case_fetch.domain.entities import CaseRecord, FetchStatus


class FetchStatusService:
    """Dashboard counts and per-case listings, both derived by one rule."""

    def __init__(self, repository: CaseRepository):
        self._repository = repository

    async def counts(self, firm_id: str | None = None) -> dict[str, int]:
        counts = await self._repository.count_by_fetch_status(firm_id)
        result = {status.value: counts.get(status, 0) for status in FetchStatus}
        result["total"] = sum(result.values())
        return result

    async def list_cases(
        self,
        *,
        firm_id: str | None = None,
        status: FetchStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[CaseRecord, FetchStatus]]:
        return await self._repository.list_with_fetch_status(
            firm_id=firm_id, status=status, skip=skip, limit=limit
        )
