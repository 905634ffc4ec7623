"""Operator-tunable fetch configuration with bounded values."""

from dataclasses import asdict, dataclass
from typing import Any

CONCURRENCY_RANGE = (1, 10)
DELAY_RANGE_MS = (500, 5000)
MAX_RETRIES_RANGE = (0, 10)


def _clamp(raw: Any, bounds: tuple[int, int], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    low, high = bounds
    return max(low, min(high, value))


def _as_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    if isinstance(raw, int):
        return bool(raw)
    return default


@dataclass(frozen=True)
class FetchConfig:
    """Settings the dispatcher reads before every batch.

    Values outside their ranges are clamped; unparsable values fall back to
    the defaults. Build instances through ``from_dict`` to get that behaviour.
    """

    concurrency: int = 5
    delay_between_requests: int = 1500  # ms, per concurrency slot
    max_retries: int = 3
    auto_retry: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FetchConfig":
        defaults = cls()
        data = data or {}
        return cls(
            concurrency=_clamp(
                data.get("concurrency"), CONCURRENCY_RANGE, defaults.concurrency
            ),
            delay_between_requests=_clamp(
                data.get("delay_between_requests"),
                DELAY_RANGE_MS,
                defaults.delay_between_requests,
            ),
            max_retries=_clamp(
                data.get("max_retries"), MAX_RETRIES_RANGE, defaults.max_retries
            ),
            auto_retry=_as_bool(data.get("auto_retry"), defaults.auto_retry),
        )

    def merged(self, updates: dict[str, Any]) -> "FetchConfig":
        """Return a new config with ``updates`` applied on top of this one."""
        current = asdict(self)
        current.update({k: v for k, v in updates.items() if v is not None})
        return FetchConfig.from_dict(current)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
