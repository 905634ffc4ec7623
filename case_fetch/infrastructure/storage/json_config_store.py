"""JSON-file storage for the fetch configuration.

Keeps operator tweaks (concurrency, delay, retries) across restarts
without a database migration. A missing or corrupt file means defaults.
"""

import json
import logging
from pathlib import Path

from case_fetch.application.interfaces.fetch_config_store import FetchConfigStore
from case_fetch.domain.entities.fetch_config import FetchConfig

logger = logging.getLogger(__name__)


class JsonFetchConfigStore(FetchConfigStore):
    """Reads/writes ``FetchConfig`` as a small JSON document on disk."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def load(self) -> FetchConfig:
        if not self._path.exists():
            return FetchConfig()
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Could not read %s — using default fetch config", self._path)
            return FetchConfig()
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed fetch config in %s", self._path)
            return FetchConfig()
        return FetchConfig.from_dict(data)

    def save(self, config: FetchConfig) -> FetchConfig:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
        logger.info("Fetch config saved: %s", config.to_dict())
        return config
