"""Exception hierarchy for the ToyBank loan workflow.

Rejected adjustments are not errors and have no exception here; see
``toybank.adjustments.validate_adjustment``.
"""

from typing import Optional


class ToybankError(Exception):
    """Base exception for all ToyBank errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigurationError(ToybankError):
    """Raised when the database URL names an unsupported store."""
    pass


class DatabaseConnectionError(ToybankError):
    """Raised when a session cannot be opened (bad credentials, unreachable store, driver error)."""
    pass


class QueryError(ToybankError):
    """Raised when a read or update statement fails."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(
            f"{operation} failed: {cause}",
            {'operation': operation, 'error': type(cause).__name__}
        )
        self.operation = operation
        self.cause = cause


class CommitError(ToybankError):
    """Raised when pending writes cannot be committed."""

    def __init__(self, cause: Exception):
        super().__init__(f"Commit failed: {cause}", {'error': type(cause).__name__})
        self.cause = cause
