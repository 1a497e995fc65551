"""
Storage Services Package

Provides the abstract key-value interface and its embedded backends.
The persistence engine depends only on KeyValueStore.
"""

from expense_vault.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    StorageError,
    StoreUnavailableError,
    UndecodableValueError,
    WriteFailureError,
)
from expense_vault.services.storage.memory import InMemoryKeyValueStore
from expense_vault.services.storage.json_files import JsonFileKeyValueStore
from expense_vault.services.storage.sqlite import SqliteKeyValueStore
from expense_vault.services.storage.factory import open_key_value_store

__all__ = [
    # Interface
    "KeyValueStore",
    # Exceptions
    "QuotaExceededError",
    "StorageError",
    "StoreUnavailableError",
    "UndecodableValueError",
    "WriteFailureError",
    # Backends
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "SqliteKeyValueStore",
    "open_key_value_store",
]
