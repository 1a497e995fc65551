"""
Collection Persister

Writes a collection back as the current versioned envelope:

    {"version": <current version>, "<payload key>": <payload>}

The legacy bare shape is never written, so every successful save also
upgrades the stored format.

CRITICAL: persist() never raises. A failed save leaves the in-memory
value authoritative for the session; the failure is only logged.
"""

import json
from typing import Any, Optional

from expense_vault.audit import PersistenceLogger
from expense_vault.models.events import PersistenceEventBuilder
from expense_vault.persistence.collections import CollectionDefinition
from expense_vault.persistence.detector import VERSION_FIELD
from expense_vault.services.storage.interface import KeyValueStore


def encode_envelope(definition: CollectionDefinition, value: Any) -> str:
    """
    Encode a collection value as envelope JSON.

    Raises:
        ValueError: If the value holds NaN or infinite numbers
        TypeError: If the value is not JSON serializable
    """
    envelope = {
        VERSION_FIELD: definition.target_version,
        definition.payload_key: definition.to_storage_payload(value),
    }
    return json.dumps(envelope, ensure_ascii=False, allow_nan=False)


class Persister:
    """Best-effort writer for one collection."""

    def __init__(
        self,
        definition: CollectionDefinition,
        store: Optional[KeyValueStore],
        event_logger: Optional[PersistenceLogger] = None,
    ):
        self._definition = definition
        self._store = store
        self._events = event_logger or PersistenceLogger()

    def persist(self, value: Any) -> bool:
        """
        Save a collection value.

        Returns:
            True if the value was written, False if the failure was logged
        """
        d = self._definition

        if self._store is None:
            self._events.log(PersistenceEventBuilder.store_unavailable(d.name, d.storage_key, "save"))
            return False

        try:
            text = encode_envelope(d, value)
        except (TypeError, ValueError) as e:
            self._events.log(PersistenceEventBuilder.write_failed(
                d.name, d.storage_key, d.target_version, e, d.count(value),
            ))
            return False

        try:
            self._store.set_item(d.storage_key, text)
        except Exception as e:
            # Includes StoreUnavailableError and QuotaExceededError; the
            # event records which one
            self._events.log(PersistenceEventBuilder.write_failed(
                d.name, d.storage_key, d.target_version, e, d.count(value),
            ))
            return False

        self._events.log(PersistenceEventBuilder.persisted(
            d.name, d.storage_key, d.target_version, len(text),
        ))
        return True
