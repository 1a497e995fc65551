"""
Versioned Persistence Package

Detect -> migrate -> validate on the way in, versioned envelope on the
way out, for any collection described by a CollectionDefinition.
"""

from expense_vault.persistence.collections import (
    ALL_COLLECTIONS,
    BUDGET,
    CATEGORIES,
    TRANSACTIONS,
    CollectionDefinition,
)
from expense_vault.persistence.detector import (
    DetectedFormat,
    FormatKind,
    decode_stored_value,
    detect_format,
)
from expense_vault.persistence.errors import (
    MigrationError,
    ParseFailure,
    PersistenceError,
)
from expense_vault.persistence.loader import (
    CollectionLoader,
    LoadOutcome,
    LoadResult,
    load_collection,
)
from expense_vault.persistence.migrations import MigrationRegistry
from expense_vault.persistence.persister import Persister, encode_envelope
from expense_vault.persistence.store import CollectionStore

__all__ = [
    # Collections
    "ALL_COLLECTIONS",
    "BUDGET",
    "CATEGORIES",
    "TRANSACTIONS",
    "CollectionDefinition",
    # Detection
    "DetectedFormat",
    "FormatKind",
    "decode_stored_value",
    "detect_format",
    # Errors
    "MigrationError",
    "ParseFailure",
    "PersistenceError",
    # Loading
    "CollectionLoader",
    "LoadOutcome",
    "LoadResult",
    "load_collection",
    # Migration
    "MigrationRegistry",
    # Saving
    "Persister",
    "encode_envelope",
    # Store
    "CollectionStore",
]
