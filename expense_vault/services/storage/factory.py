"""
Storage backend selection.

A store that cannot be opened is reported as None rather than an
exception: the engine treats a missing store as "no storage capability"
and runs on defaults for the whole session.
"""

from typing import Optional

import structlog

from expense_vault.config import StorageSettings
from expense_vault.services.storage.interface import KeyValueStore, StorageError
from expense_vault.services.storage.json_files import JsonFileKeyValueStore
from expense_vault.services.storage.memory import InMemoryKeyValueStore
from expense_vault.services.storage.sqlite import SqliteKeyValueStore


logger = structlog.get_logger(__name__)


def open_key_value_store(settings: StorageSettings) -> Optional[KeyValueStore]:
    """
    Open the backend named in settings.

    Returns:
        The opened store, or None if it is unavailable
    """
    try:
        if settings.backend == "memory":
            return InMemoryKeyValueStore(quota_bytes=settings.quota_bytes)
        if settings.backend == "sqlite":
            return SqliteKeyValueStore(
                settings.data_dir / settings.sqlite_filename,
                quota_bytes=settings.quota_bytes,
                retry_attempts=settings.write_retry_attempts,
            )
        return JsonFileKeyValueStore(
            settings.data_dir,
            quota_bytes=settings.quota_bytes,
            retry_attempts=settings.write_retry_attempts,
        )
    except StorageError as e:
        logger.warning(
            "storage_unavailable",
            backend=settings.backend,
            data_dir=str(settings.data_dir),
            error=str(e),
        )
        return None
