"""Services package."""

from expense_vault.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    QuotaExceededError,
    SqliteKeyValueStore,
    StorageError,
    StoreUnavailableError,
    UndecodableValueError,
    WriteFailureError,
    open_key_value_store,
)

__all__ = [
    # Storage services
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "QuotaExceededError",
    "SqliteKeyValueStore",
    "StorageError",
    "StoreUnavailableError",
    "UndecodableValueError",
    "WriteFailureError",
    "open_key_value_store",
]
