"""
Abstract Key-Value Storage Interface

DESIGN DECISION: The persistence engine only ever needs four string
operations, so that is all the interface offers. This allows us to:
1. Swap the on-disk backend (JSON files, SQLite) without touching the engine
2. Use in-memory storage for testing
3. Simulate quota and availability failures in tests

Values are opaque text. Encoding, versioning and validation are the
engine's job, never the backend's.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class KeyValueStore(ABC):
    """
    Abstract interface for an embedded key-value store.

    Any backend must implement these methods. Backends that enforce a
    per-value size limit call `check_quota()` before writing.
    """

    def __init__(self, quota_bytes: int = 0):
        """
        Args:
            quota_bytes: Maximum encoded size of one value. 0 disables the check.
        """
        self._quota_bytes = quota_bytes

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key has never been written

        Raises:
            StoreUnavailableError: If the backend cannot be read at all
            UndecodableValueError: If the stored bytes are not valid UTF-8
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Raises:
            QuotaExceededError: If the value is larger than the backend allows
            WriteFailureError: If the backend rejected the write
            StoreUnavailableError: If the backend cannot be written at all
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over every stored key."""
        pass

    def copy_item(self, source: str, destination: str) -> None:
        """
        Copy the stored value of one key to another, byte for byte.

        Backends that can hold bytes get_item() cannot decode override
        this to copy them unchanged. Copying a missing key does nothing.

        Raises:
            QuotaExceededError: If the value is larger than the backend allows
            WriteFailureError: If the backend rejected the write
            StoreUnavailableError: If the backend cannot be used at all
        """
        value = self.get_item(source)
        if value is not None:
            self.set_item(destination, value)

    def __contains__(self, key: str) -> bool:
        try:
            return self.get_item(key) is not None
        except UndecodableValueError:
            return True

    def check_quota(self, key: str, value: str) -> None:
        """Raise QuotaExceededError if value is over the configured limit."""
        self.check_quota_size(key, len(value.encode("utf-8")))

    def check_quota_size(self, key: str, size: int) -> None:
        """Raise QuotaExceededError if size bytes are over the configured limit."""
        if not self._quota_bytes:
            return
        if size > self._quota_bytes:
            raise QuotaExceededError(
                f"Value for '{key}' is {size} bytes; quota is {self._quota_bytes} bytes"
            )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StoreUnavailableError(StorageError):
    """The host has no usable storage (missing, unreadable or closed)."""
    pass


class WriteFailureError(StorageError):
    """The backend rejected or failed a write."""
    pass


class QuotaExceededError(WriteFailureError):
    """The value does not fit in the space the backend allows."""
    pass


class UndecodableValueError(StorageError):
    """A stored value exists but is not valid UTF-8 text."""

    def __init__(self, message: str, raw_size: int):
        super().__init__(message)
        self.raw_size = raw_size
