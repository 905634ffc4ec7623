"""Abstract repository interface (port) for case records."""

from abc import ABC, abstractmethod

from case_fetch.domain.entities.case_record import CaseRecord
from case_fetch.domain.entities.fetch_status import FetchStatus


class CaseRepository(ABC):
    """Port for case persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, case_id: str) -> CaseRecord | None:
        """Retrieve a single case by ID."""
        ...

    @abstractmethod
    async def create(self, case: CaseRecord) -> CaseRecord:
        """Persist a new case and return it with the generated ID."""
        ...

    @abstractmethod
    async def update(self, case: CaseRecord) -> CaseRecord:
        """Update an existing case."""
        ...

    @abstractmethod
    async def count_by_fetch_status(
        self, firm_id: str | None = None
    ) -> dict[FetchStatus, int]:
        """Count cases per derived fetch status in one set-based query."""
        ...

    @abstractmethod
    async def list_with_fetch_status(
        self,
        *,
        firm_id: str | None = None,
        status: FetchStatus | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[CaseRecord, FetchStatus]]:
        """List cases with their derived fetch status, optionally filtered by it."""
        ...

    @abstractmethod
    async def list_fetch_candidates(
        self, firm_id: str | None = None
    ) -> list[tuple[CaseRecord, bool]]:
        """Cases with a CNR and court type, each paired with whether it already
        has any queue item."""
        ...
