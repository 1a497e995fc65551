"""
Persistence Event Models for Expense Vault

Every load and persist outcome is recorded as a structured event.
This provides:
1. Traceability of what happened to stored data at startup
2. Enough detail to diagnose data loss after the fact
3. A single place that defines how failures are described

DESIGN DECISION: Storage failures never surface as exceptions to the
user. The event log is the only place they are visible, so every
degraded path MUST emit one of these.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PersistenceEventType(str, Enum):
    """Types of events emitted by the loader, persister and stores."""
    # Loading
    LOAD_COMPLETED = "load_completed"
    NO_STORED_DATA = "no_stored_data"
    STORE_UNAVAILABLE = "store_unavailable"
    PARSE_FAILED = "parse_failed"
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    FUTURE_VERSION = "future_version"
    MIGRATION_APPLIED = "migration_applied"
    MIGRATION_FAILED = "migration_failed"
    RECORD_REPAIRED = "record_repaired"
    UNREADABLE_DATA_QUARANTINED = "unreadable_data_quarantined"
    LOAD_CRASHED = "load_crashed"

    # Writing
    PERSISTED = "persisted"
    WRITE_FAILED = "write_failed"

    # Observers
    OBSERVER_FAILED = "observer_failed"


class PersistenceSeverity(str, Enum):
    """Severity level for persistence events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class PersistenceEvent(BaseModel):
    """
    A single persistence event.

    `collection` and `storage_key` identify what the event is about;
    versions are filled in whenever they are known.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: PersistenceEventType
    severity: PersistenceSeverity = PersistenceSeverity.INFO

    collection: str = Field(
        ...,
        description="Collection name (e.g. 'transactions')"
    )
    storage_key: Optional[str] = Field(
        default=None,
        description="Key in the underlying store"
    )
    stored_version: Optional[int] = None
    target_version: Optional[int] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "collection": self.collection,
            "storage_key": self.storage_key,
            "stored_version": self.stored_version,
            "target_version": self.target_version,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


def _error_fields(error: Optional[BaseException]) -> dict:
    if error is None:
        return {}
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }


class PersistenceEventBuilder:
    """
    Helper class to build persistence events with common patterns.

    Usage:
        event = PersistenceEventBuilder.parse_failed("transactions", "expenses", error, raw_size)
        event = PersistenceEventBuilder.persisted("budget", "budget", 1, 42)
    """

    @staticmethod
    def load_completed(
        collection: str,
        storage_key: str,
        stored_version: int,
        target_version: int,
        item_count: Optional[int],
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.LOAD_COMPLETED,
            collection=collection,
            storage_key=storage_key,
            stored_version=stored_version,
            target_version=target_version,
            description=f"Loaded {collection} (stored v{stored_version}, current v{target_version})",
            details={"item_count": item_count} if item_count is not None else {},
        )

    @staticmethod
    def no_stored_data(collection: str, storage_key: str) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.NO_STORED_DATA,
            severity=PersistenceSeverity.DEBUG,
            collection=collection,
            storage_key=storage_key,
            description=f"No stored {collection}; starting from defaults",
        )

    @staticmethod
    def store_unavailable(
        collection: str,
        storage_key: str,
        operation: str,
        error: Optional[BaseException] = None,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.STORE_UNAVAILABLE,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            description=f"Storage unavailable during {operation} of {collection}",
            details={"operation": operation},
            **_error_fields(error),
        )

    @staticmethod
    def parse_failed(
        collection: str,
        storage_key: str,
        error: BaseException,
        raw_size: int,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.PARSE_FAILED,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            description=f"Stored {collection} is not valid JSON; using defaults",
            details={"raw_size": raw_size},
            **_error_fields(error),
        )

    @staticmethod
    def unrecognized_format(
        collection: str,
        storage_key: str,
        problem: str,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.UNRECOGNIZED_FORMAT,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            description=f"Stored {collection} has an unrecognized format; using defaults",
            details={"problem": problem},
        )

    @staticmethod
    def future_version(
        collection: str,
        storage_key: str,
        stored_version: int,
        target_version: int,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.FUTURE_VERSION,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            stored_version=stored_version,
            target_version=target_version,
            description=(
                f"Stored {collection} v{stored_version} is newer than "
                f"supported v{target_version}; loading without migration"
            ),
        )

    @staticmethod
    def migration_applied(
        collection: str,
        storage_key: str,
        stored_version: int,
        target_version: int,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.MIGRATION_APPLIED,
            collection=collection,
            storage_key=storage_key,
            stored_version=stored_version,
            target_version=target_version,
            description=f"Migrated {collection} from v{stored_version} to v{target_version}",
            details={"steps": target_version - stored_version},
        )

    @staticmethod
    def migration_failed(
        collection: str,
        storage_key: str,
        stored_version: int,
        target_version: int,
        error: BaseException,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.MIGRATION_FAILED,
            severity=PersistenceSeverity.ERROR,
            collection=collection,
            storage_key=storage_key,
            stored_version=stored_version,
            target_version=target_version,
            description=f"Could not migrate {collection} from v{stored_version}; using defaults",
            **_error_fields(error),
        )

    @staticmethod
    def record_repaired(
        collection: str,
        storage_key: str,
        issues: list[dict],
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.RECORD_REPAIRED,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            description=f"Repaired {len(issues)} invalid field(s) in {collection}",
            details={"issues": issues},
        )

    @staticmethod
    def unreadable_data_quarantined(
        collection: str,
        storage_key: str,
        quarantine_key: str,
        raw_size: int,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.UNREADABLE_DATA_QUARANTINED,
            severity=PersistenceSeverity.WARNING,
            collection=collection,
            storage_key=storage_key,
            description=f"Copied unreadable {collection} to '{quarantine_key}'",
            details={"quarantine_key": quarantine_key, "raw_size": raw_size},
        )

    @staticmethod
    def load_crashed(
        collection: str,
        storage_key: str,
        error: BaseException,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.LOAD_CRASHED,
            severity=PersistenceSeverity.ERROR,
            collection=collection,
            storage_key=storage_key,
            description=f"Unexpected error while loading {collection}; using defaults",
            **_error_fields(error),
        )

    @staticmethod
    def persisted(
        collection: str,
        storage_key: str,
        target_version: int,
        size: int,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.PERSISTED,
            severity=PersistenceSeverity.DEBUG,
            collection=collection,
            storage_key=storage_key,
            target_version=target_version,
            description=f"Saved {collection} v{target_version}",
            details={"size": size},
        )

    @staticmethod
    def write_failed(
        collection: str,
        storage_key: str,
        target_version: int,
        error: BaseException,
        item_count: Optional[int] = None,
    ) -> PersistenceEvent:
        details = {"item_count": item_count} if item_count is not None else {}
        return PersistenceEvent(
            event_type=PersistenceEventType.WRITE_FAILED,
            severity=PersistenceSeverity.ERROR,
            collection=collection,
            storage_key=storage_key,
            target_version=target_version,
            description=f"Could not save {collection}; in-memory value kept",
            details=details,
            **_error_fields(error),
        )

    @staticmethod
    def observer_failed(
        collection: str,
        error: BaseException,
    ) -> PersistenceEvent:
        return PersistenceEvent(
            event_type=PersistenceEventType.OBSERVER_FAILED,
            severity=PersistenceSeverity.ERROR,
            collection=collection,
            description=f"A {collection} subscriber raised",
            **_error_fields(error),
        )
