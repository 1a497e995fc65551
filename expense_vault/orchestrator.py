"""
Application Wiring for Expense Vault

This module opens the key-value store and builds one CollectionStore
per collection. It is the only place that decides which backend is used
and how logging is set up.

Startup order:
1. Configure logging
2. Open the key-value store (None if unavailable)
3. Load every collection, synchronously, before anyone reads it

UI code receives the VaultComponents and never sees the store itself.
"""

from typing import Optional

from expense_vault.audit import PersistenceLogger, configure_logging
from expense_vault.config import Settings, get_settings
from expense_vault.models.records import BudgetConfig, Transaction
from expense_vault.persistence import (
    BUDGET,
    CATEGORIES,
    TRANSACTIONS,
    CollectionStore,
    LoadResult,
)
from expense_vault.services.storage import KeyValueStore, open_key_value_store


class VaultComponents:
    """The three collection stores, plus what they were built from."""

    def __init__(
        self,
        transactions: CollectionStore[list[Transaction]],
        budget: CollectionStore[BudgetConfig],
        categories: CollectionStore[list[str]],
        kv_store: Optional[KeyValueStore],
        event_logger: PersistenceLogger,
    ):
        self.transactions = transactions
        self.budget = budget
        self.categories = categories
        self.kv_store = kv_store
        self.event_logger = event_logger

    @property
    def storage_available(self) -> bool:
        return self.kv_store is not None

    def load_results(self) -> dict[str, LoadResult]:
        """Startup load outcome per collection name."""
        return {
            store.name: store.load_result
            for store in (self.transactions, self.budget, self.categories)
        }


def create_app_components(
    settings: Optional[Settings] = None,
    kv_store: Optional[KeyValueStore] = None,
    use_storage: bool = True,
    configure_logs: bool = True,
) -> VaultComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        kv_store: An already opened store; opened from settings if None
        use_storage: Set to False to run on defaults without any storage
        configure_logs: Set to False when the caller configures structlog

    Returns:
        VaultComponents with every collection loaded
    """
    settings = settings or get_settings()

    if configure_logs:
        configure_logging(settings.logging)

    if not use_storage:
        kv_store = None
    elif kv_store is None:
        kv_store = open_key_value_store(settings.storage)

    event_logger = PersistenceLogger()
    quarantine = settings.app.quarantine_unreadable

    return VaultComponents(
        transactions=CollectionStore(TRANSACTIONS, kv_store, event_logger, quarantine),
        budget=CollectionStore(BUDGET, kv_store, event_logger, quarantine),
        categories=CollectionStore(CATEGORIES, kv_store, event_logger, quarantine),
        kv_store=kv_store,
        event_logger=event_logger,
    )
