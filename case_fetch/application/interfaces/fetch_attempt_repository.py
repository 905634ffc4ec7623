"""Abstract repository interface (port) for the fetch attempt log."""

from abc import ABC, abstractmethod

from case_fetch.domain.entities.fetch_attempt import FetchAttempt


class FetchAttemptRepository(ABC):
    """Port for fetch attempt persistence."""

    @abstractmethod
    async def create(self, attempt: FetchAttempt) -> FetchAttempt:
        ...

    @abstractmethod
    async def list_by_case(self, case_id: str, limit: int = 50) -> list[FetchAttempt]:
        """Attempts for one case, most recent first."""
        ...
