"""
Collection Loader

Turns whatever is stored under a collection's key into a validated,
current-version value. The states are:

    store missing / unreadable    -> default   (+ warning)
    nothing stored                -> default
    not UTF-8 or not JSON         -> default   (+ warning, raw data quarantined)
    unrecognized shape            -> default   (+ warning, raw data quarantined)
    stored v < current            -> migrate -> validate
    stored v == current           -> validate
    stored v > current            -> validate unmigrated (+ warning)

CRITICAL: load_collection() never raises. Application start must always
get a usable value, so every failure degrades to the collection default.
It never returns partially migrated or unvalidated data either.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_vault.audit import PersistenceLogger
from expense_vault.models.events import PersistenceEventBuilder
from expense_vault.models.records import ValidationIssue
from expense_vault.persistence.collections import CollectionDefinition
from expense_vault.persistence.detector import (
    FormatKind,
    decode_stored_value,
    detect_format,
)
from expense_vault.persistence.errors import (
    MigrationError,
    ParseFailure,
    StorageError,
    UndecodableValueError,
)
from expense_vault.services.storage.interface import KeyValueStore


class LoadOutcome(str, Enum):
    """How a load ended."""
    LOADED = "loaded"
    MIGRATED = "migrated"
    FUTURE_VERSION = "future_version"
    NO_DATA = "no_data"
    STORE_UNAVAILABLE = "store_unavailable"
    UNREADABLE = "unreadable"
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    MIGRATION_FAILED = "migration_failed"
    CRASHED = "crashed"


DEFAULTED_OUTCOMES = frozenset({
    LoadOutcome.NO_DATA,
    LoadOutcome.STORE_UNAVAILABLE,
    LoadOutcome.UNREADABLE,
    LoadOutcome.UNRECOGNIZED_FORMAT,
    LoadOutcome.MIGRATION_FAILED,
    LoadOutcome.CRASHED,
})


class LoadResult(BaseModel):
    """Value produced by a load, and how it was obtained."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    collection: str
    value: Any
    outcome: LoadOutcome
    stored_version: Optional[int] = None
    target_version: int
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def used_defaults(self) -> bool:
        """True when the value is the collection default, not stored data."""
        return self.outcome in DEFAULTED_OUTCOMES


class CollectionLoader:
    """Runs the load state machine for one collection."""

    def __init__(
        self,
        definition: CollectionDefinition,
        store: Optional[KeyValueStore],
        event_logger: Optional[PersistenceLogger] = None,
        quarantine_unreadable: bool = True,
    ):
        self._definition = definition
        self._store = store
        self._events = event_logger or PersistenceLogger()
        self._quarantine_unreadable = quarantine_unreadable

    def load(self) -> LoadResult:
        """Load the collection. Never raises."""
        d = self._definition
        try:
            return self._load()
        except Exception as e:
            self._events.log(PersistenceEventBuilder.load_crashed(d.name, d.storage_key, e))
            return self._default_result(LoadOutcome.CRASHED)

    def _load(self) -> LoadResult:
        d = self._definition
        target = d.target_version

        if self._store is None:
            self._events.log(PersistenceEventBuilder.store_unavailable(d.name, d.storage_key, "load"))
            return self._default_result(LoadOutcome.STORE_UNAVAILABLE)

        try:
            raw = self._store.get_item(d.storage_key)
        except UndecodableValueError as e:
            self._events.log(PersistenceEventBuilder.parse_failed(d.name, d.storage_key, e, e.raw_size))
            self._quarantine(e.raw_size)
            return self._default_result(LoadOutcome.UNREADABLE)
        except StorageError as e:
            self._events.log(PersistenceEventBuilder.store_unavailable(d.name, d.storage_key, "load", e))
            return self._default_result(LoadOutcome.STORE_UNAVAILABLE)

        if raw is None:
            self._events.log(PersistenceEventBuilder.no_stored_data(d.name, d.storage_key))
            return self._default_result(LoadOutcome.NO_DATA)
        raw_size = len(raw.encode("utf-8", errors="replace"))

        try:
            decoded = decode_stored_value(raw)
        except ParseFailure as e:
            self._events.log(PersistenceEventBuilder.parse_failed(d.name, d.storage_key, e, raw_size))
            self._quarantine(raw_size)
            return self._default_result(LoadOutcome.UNREADABLE)

        detected = detect_format(decoded, d.payload_key, d.payload_type, d.legacy_types)
        if detected.kind == FormatKind.UNRECOGNIZED:
            self._events.log(PersistenceEventBuilder.unrecognized_format(
                d.name, d.storage_key, detected.problem or "unknown shape",
            ))
            self._quarantine(raw_size)
            return self._default_result(LoadOutcome.UNRECOGNIZED_FORMAT)

        stored_version = detected.version
        payload = detected.payload

        if stored_version < target:
            try:
                payload = d.migrations.migrate(payload, stored_version)
            except MigrationError as e:
                self._events.log(PersistenceEventBuilder.migration_failed(
                    d.name, d.storage_key, stored_version, target, e,
                ))
                self._quarantine(raw_size)
                return self._default_result(LoadOutcome.MIGRATION_FAILED, stored_version)
            self._events.log(PersistenceEventBuilder.migration_applied(
                d.name, d.storage_key, stored_version, target,
            ))
            outcome = LoadOutcome.MIGRATED
        elif stored_version > target:
            self._events.log(PersistenceEventBuilder.future_version(
                d.name, d.storage_key, stored_version, target,
            ))
            outcome = LoadOutcome.FUTURE_VERSION
        else:
            outcome = LoadOutcome.LOADED

        value, issues = d.validate_payload(payload)
        if issues:
            self._events.log(PersistenceEventBuilder.record_repaired(
                d.name, d.storage_key, [issue.model_dump() for issue in issues],
            ))

        self._events.log(PersistenceEventBuilder.load_completed(
            d.name, d.storage_key, stored_version, target, d.count(value),
        ))
        return LoadResult(
            collection=d.name,
            value=value,
            outcome=outcome,
            stored_version=stored_version,
            target_version=target,
            issues=issues,
        )

    def _default_result(
        self,
        outcome: LoadOutcome,
        stored_version: Optional[int] = None,
    ) -> LoadResult:
        return LoadResult(
            collection=self._definition.name,
            value=self._definition.default(),
            outcome=outcome,
            stored_version=stored_version,
            target_version=self._definition.target_version,
        )

    def _quarantine(self, raw_size: int) -> None:
        """Copy stored bytes that are about to be replaced by defaults aside."""
        if not self._quarantine_unreadable:
            return
        d = self._definition
        try:
            self._store.copy_item(d.storage_key, d.quarantine_key)
        except StorageError as e:
            self._events.log(PersistenceEventBuilder.write_failed(
                d.name, d.quarantine_key, d.target_version, e,
            ))
            return
        self._events.log(PersistenceEventBuilder.unreadable_data_quarantined(
            d.name, d.storage_key, d.quarantine_key, raw_size,
        ))


def load_collection(
    definition: CollectionDefinition,
    store: Optional[KeyValueStore],
    event_logger: Optional[PersistenceLogger] = None,
    quarantine_unreadable: bool = True,
) -> LoadResult:
    """
    Load one collection from a key-value store.

    Args:
        definition: Which collection to load
        store: The store, or None when no storage is available
        event_logger: Where to log outcomes
        quarantine_unreadable: Copy unreadable data to the quarantine key

    Returns:
        LoadResult whose value is always usable
    """
    return CollectionLoader(
        definition,
        store,
        event_logger=event_logger,
        quarantine_unreadable=quarantine_unreadable,
    ).load()
