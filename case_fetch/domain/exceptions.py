"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class InvalidInputError(Exception):
    """Raised when caller-supplied data cannot be accepted (bad CNR, unknown forum...)."""

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class CourtLookupError(Exception):
    """Raised when the external court-records API does not return usable case data.

    ``code`` is a stable machine-readable tag (e.g. ``CNR_NOT_FOUND``),
    ``message`` is already user-facing.
    """

    retryable: bool = False

    def __init__(self, code: str, message: str, status_code: int | None = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TransientLookupError(CourtLookupError):
    """Timeouts, network failures, rate limiting, 5xx — worth retrying later."""

    retryable = True


class PermanentLookupError(CourtLookupError):
    """Unknown CNR, malformed identifiers, court mismatch — retrying will not help."""

    retryable = False


class QueueStoreError(Exception):
    """Raised when the queue store itself is unavailable before any claim is made."""
