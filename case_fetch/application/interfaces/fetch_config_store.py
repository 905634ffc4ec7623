"""Abstract interface for persisting the fetch configuration."""

from abc import ABC, abstractmethod

from case_fetch.domain.entities.fetch_config import FetchConfig


class FetchConfigStore(ABC):
    """Port for fetch configuration storage (JSON file, database row, ...)."""

    @abstractmethod
    def load(self) -> FetchConfig:
        """Return the stored config, or defaults when nothing is stored."""
        ...

    @abstractmethod
    def save(self, config: FetchConfig) -> FetchConfig:
        """Persist the config and return what was stored."""
        ...
