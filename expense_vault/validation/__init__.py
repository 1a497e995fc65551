"""Record validation package."""

from expense_vault.validation.validator import (
    validate_budget,
    validate_budget_with_issues,
    validate_categories,
    validate_category,
    validate_category_with_issues,
    validate_transaction,
    validate_transaction_with_issues,
)

__all__ = [
    "validate_budget",
    "validate_budget_with_issues",
    "validate_categories",
    "validate_category",
    "validate_category_with_issues",
    "validate_transaction",
    "validate_transaction_with_issues",
]
