"""Abstract interface for the external court-records lookup."""

from abc import ABC, abstractmethod

from case_fetch.domain.entities.case_lookup import CaseLookupResult
from case_fetch.domain.entities.queue_item import CourtType


class CourtDataClient(ABC):
    """Port for the remote court-records API.

    Implementations raise ``TransientLookupError`` for failures worth
    retrying and ``PermanentLookupError`` for everything else.
    """

    @abstractmethod
    async def lookup(self, cnr_number: str, court_type: CourtType) -> CaseLookupResult:
        """Fetch the case identified by ``cnr_number`` from the given court system."""
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
