"""
Data Models Package

This package contains all Pydantic models used in Expense Vault.
All data handed to collaborators must conform to these schemas.
"""

from expense_vault.models.records import (
    DEFAULT_BUDGET_AMOUNT,
    DEFAULT_CATEGORIES,
    DEFAULT_TRANSACTION_NAME,
    BudgetConfig,
    Transaction,
    TransactionType,
    ValidationIssue,
    default_categories,
    new_record_id,
    today_iso,
)
from expense_vault.models.events import (
    PersistenceEvent,
    PersistenceEventBuilder,
    PersistenceEventType,
    PersistenceSeverity,
)

__all__ = [
    # Record models
    "DEFAULT_BUDGET_AMOUNT",
    "DEFAULT_CATEGORIES",
    "DEFAULT_TRANSACTION_NAME",
    "BudgetConfig",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "default_categories",
    "new_record_id",
    "today_iso",
    # Event models
    "PersistenceEvent",
    "PersistenceEventBuilder",
    "PersistenceEventType",
    "PersistenceSeverity",
]
