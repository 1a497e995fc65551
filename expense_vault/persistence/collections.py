"""
Collection Definitions

DESIGN DECISION: The loader, persister and store are written once and
know nothing about transactions, budgets or categories. Everything that
differs between collections is injected through a CollectionDefinition:

- where it lives (storage key) and how its envelope is named (payload key)
- what its legacy and current payloads look like
- its default value
- how one item (or the singleton) is validated
- its migration steps

Adding a collection means adding a definition here, nothing else.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from expense_vault.models.records import (
    BudgetConfig,
    ValidationIssue,
    default_categories,
)
from expense_vault.persistence.migrations import (
    BUDGET_STEPS,
    CATEGORY_STEPS,
    TRANSACTION_STEPS,
    MigrationRegistry,
)
from expense_vault.validation import (
    validate_budget_with_issues,
    validate_category_with_issues,
    validate_transaction_with_issues,
)


ItemValidator = Callable[..., tuple[Any, list[ValidationIssue]]]


def _to_storage(item: Any) -> Any:
    """JSON-ready form of one validated item."""
    if isinstance(item, BaseModel):
        dump = getattr(item, "to_storage_dict", None)
        return dump() if dump else item.model_dump(mode="json")
    return item


class CollectionDefinition(BaseModel):
    """
    Everything the engine needs to know about one stored collection.

    For sequence collections `validate_item(raw, index)` is applied to
    every element and may return None to drop it. For singletons it is
    called once as `validate_item(raw)`.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    storage_key: str
    payload_key: str
    payload_type: type
    legacy_types: tuple[type, ...]
    is_sequence: bool
    default_factory: Callable[[], Any]
    validate_item: ItemValidator
    migrations: MigrationRegistry

    @property
    def target_version(self) -> int:
        return self.migrations.target_version

    @property
    def quarantine_key(self) -> str:
        """Key that receives a copy of unreadable stored data."""
        return f"{self.storage_key}.unreadable"

    def default(self) -> Any:
        """A fresh default value."""
        return self.default_factory()

    def validate_payload(self, payload: Any) -> tuple[Any, list[ValidationIssue]]:
        """
        Validate a whole (migrated) payload.

        Never raises. A sequence collection given something that is not
        a list falls back to its default value.
        """
        if not self.is_sequence:
            return self.validate_item(payload)

        if not isinstance(payload, list):
            return self.default(), [ValidationIssue(
                field=self.payload_key,
                issue_type="invalid_type",
                message=f"{self.name} is a {type(payload).__name__}, not a list; using defaults",
            )]

        items = []
        issues: list[ValidationIssue] = []
        for index, raw in enumerate(payload):
            item, item_issues = self.validate_item(raw, index)
            issues.extend(item_issues)
            if item is not None:
                items.append(item)
        return items, issues

    def to_storage_payload(self, value: Any) -> Any:
        """JSON-ready payload for a value (validated or not)."""
        if not self.is_sequence:
            return _to_storage(value)
        if isinstance(value, (list, tuple)):
            return [_to_storage(item) for item in value]
        return value

    def count(self, value: Any) -> Optional[int]:
        """Number of items for sequence collections, None for singletons."""
        if self.is_sequence and isinstance(value, list):
            return len(value)
        return None


TRANSACTIONS = CollectionDefinition(
    name="transactions",
    # Older builds stored plain expenses under this key
    storage_key="expenses",
    payload_key="transactions",
    payload_type=list,
    legacy_types=(list,),
    is_sequence=True,
    default_factory=list,
    validate_item=validate_transaction_with_issues,
    migrations=MigrationRegistry(TRANSACTION_STEPS),
)

BUDGET = CollectionDefinition(
    name="budget",
    storage_key="budget",
    payload_key="budget",
    payload_type=dict,
    legacy_types=(int, float),
    is_sequence=False,
    default_factory=BudgetConfig,
    validate_item=validate_budget_with_issues,
    migrations=MigrationRegistry(BUDGET_STEPS),
)

CATEGORIES = CollectionDefinition(
    name="categories",
    storage_key="categories",
    payload_key="categories",
    payload_type=list,
    legacy_types=(list,),
    is_sequence=True,
    default_factory=default_categories,
    validate_item=validate_category_with_issues,
    migrations=MigrationRegistry(CATEGORY_STEPS),
)

ALL_COLLECTIONS: tuple[CollectionDefinition, ...] = (TRANSACTIONS, BUDGET, CATEGORIES)
