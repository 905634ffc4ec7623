"""Application service for the operator-tunable fetch configuration."""

import logging

from case_fetch.application.interfaces.fetch_config_store import FetchConfigStore
from case_fetch.application.schemas.fetch_config import FetchConfigUpdate
from case_fetch.domain.entities.fetch_config import FetchConfig

logger = logging.getLogger(__name__)


class FetchConfigService:
    """Reads and updates the config the dispatcher uses for every batch."""

    def __init__(self, store: FetchConfigStore):
        self._store = store

    def get_config(self) -> FetchConfig:
        return self._store.load()

    def update_config(self, data: FetchConfigUpdate) -> FetchConfig:
        """Apply a partial update; out-of-range values are clamped before saving."""
        current = self._store.load()
        updated = current.merged(data.model_dump(exclude_none=True))
        if updated != current:
            logger.info("Fetch config changed: %s -> %s", current.to_dict(), updated.to_dict())
        return self._store.save(updated)
