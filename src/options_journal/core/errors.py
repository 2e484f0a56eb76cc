"""Custom exception hierarchy for the options journal."""


class JournalError(Exception):
    """Base exception for all journal errors."""


# --- Configuration ---
class ConfigError(JournalError):
    """Invalid or missing configuration."""


# --- Input ---
class ValidationError(JournalError):
    """A trade input cannot produce meaningful metrics."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field}: {message}")


class ImportFormatError(JournalError):
    """An import file row could not be parsed into a trade."""

    def __init__(self, row: int, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(f"Row {row}: {reason}")


# --- Storage ---
class StorageError(JournalError):
    """Persistence layer failure."""


class NotFoundError(StorageError):
    """Requested record does not exist or belongs to another user."""


class DuplicateError(StorageError):
    """Unique constraint violated (e.g. email already registered)."""


# --- Auth ---
class AuthenticationError(JournalError):
    """Credentials or session token rejected."""
