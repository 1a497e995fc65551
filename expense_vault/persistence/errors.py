"""Errors raised inside the persistence engine.

None of these leave the loader or the persister: they are caught at the
engine boundary, logged, and turned into a default value or a failed
save. Storage-level errors live in expense_vault.services.storage.
"""

from expense_vault.services.storage.interface import (
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
    UndecodableValueError,
    WriteFailureError,
)


class PersistenceError(Exception):
    """Base exception for load/migrate errors."""


class ParseFailure(PersistenceError):
    """Stored bytes are not valid JSON."""


class MigrationError(PersistenceError):
    """A migration step failed on the stored payload."""

    def __init__(self, message: str, from_version: int) -> None:
        super().__init__(message)
        self.from_version = from_version


__all__ = [
    "MigrationError",
    "ParseFailure",
    "PersistenceError",
    "QuotaExceededError",
    "StorageError",
    "StoreUnavailableError",
    "UndecodableValueError",
    "WriteFailureError",
]
