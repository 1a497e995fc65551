"""
In-Memory Storage Implementation

Used in tests and whenever the application runs without a data
directory. Nothing survives the process.
"""

from typing import Iterator, Optional

from expense_vault.services.storage.interface import (
    KeyValueStore,
    StoreUnavailableError,
)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed key-value store.

    Enforces the same quota as the on-disk backends so quota handling
    can be exercised without filling a disk.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        quota_bytes: int = 0,
    ):
        super().__init__(quota_bytes=quota_bytes)
        self._data: dict[str, str] = dict(initial or {})
        self._closed = False

    def get_item(self, key: str) -> Optional[str]:
        self._ensure_open()
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._ensure_open()
        self.check_quota(key, value)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._ensure_open()
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        self._ensure_open()
        return iter(list(self._data))

    def close(self) -> None:
        """Make every further operation fail as unavailable."""
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreUnavailableError("In-memory store is closed")
