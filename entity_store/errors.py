"""
Error taxonomy for repository operations.

Every error raised by a backend derives from RepositoryError and carries a
machine-readable error_code alongside the human-readable message, so callers
can branch on the kind of failure without parsing text.
"""


class RepositoryError(Exception):
    """Base class for all repository failures."""

    error_code = "repository_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for structured logging and API responses."""
        return {"code": self.error_code, "message": self.message}


class InvalidArgumentError(RepositoryError, ValueError):
    """Missing or malformed input to an operation (None entity, None predicate)."""

    error_code = "invalid_argument"


class NotFoundError(RepositoryError, LookupError):
    """Update targeted an identifier that is not stored."""

    error_code = "not_found"


class CorruptStateError(RepositoryError):
    """Durable storage could not be decoded under a strict hydration policy."""

    error_code = "corrupt_state"


class SerializationError(RepositoryError):
    """An entity could not be encoded while persisting."""

    error_code = "serialization_error"


class StorageIOError(RepositoryError):
    """Filesystem failure while loading or persisting."""

    error_code = "io_failure"
