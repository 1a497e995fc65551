"""
Core Data Models for Expense Vault

These models define the strict schemas the application works with once
data has crossed the storage boundary. They are designed to:
1. Enforce type safety at runtime
2. Be serializable back to the exact on-disk JSON shape
3. Carry the built-in defaults for every collection

DESIGN DECISION: Persisted JSON is NEVER fed to these models directly.
It is decoded into plain Python values first and repaired by the
validators in expense_vault.validation, which then construct the models.
A model that fails to construct is a bug, not a data problem.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# BUILT-IN DEFAULTS - the only configuration surface of the collections
# =============================================================================

DEFAULT_BUDGET_AMOUNT = 100000.0
DEFAULT_TRANSACTION_NAME = "No description"
DEFAULT_CATEGORIES: tuple[str, ...] = ("Food", "Transport", "Entertainment")

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()


def new_record_id() -> str:
    """Generate an identifier for a record that has none."""
    return str(uuid4())


def default_categories() -> list[str]:
    """A fresh copy of the built-in category list."""
    return list(DEFAULT_CATEGORIES)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    The amount is always a magnitude; the sign lives here.
    """
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    `category` is optional: None means "no category" and is omitted when
    serialized, which keeps it distinct from an empty string.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque identifier, stable for the record's lifetime"
    )
    name: str = Field(
        default=DEFAULT_TRANSACTION_NAME,
        description="Human-readable description"
    )
    amount: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        description="Non-negative magnitude"
    )
    date: str = Field(
        default_factory=today_iso,
        pattern=ISO_DATE_PATTERN,
        description="Calendar date, YYYY-MM-DD"
    )
    category: Optional[str] = Field(
        default=None,
        description="Free-text category label"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="expense or income"
    )

    @field_validator('date')
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    def to_storage_dict(self) -> dict:
        """JSON-ready dict in the on-disk record shape."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# BUDGET
# =============================================================================

class BudgetConfig(BaseModel):
    """
    Budget configuration singleton.

    The start date default is computed when the model is built, so a
    budget that was never saved always starts "today".
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    amount: float = Field(
        default=DEFAULT_BUDGET_AMOUNT,
        allow_inf_nan=False,
        description="Budget amount for the period"
    )
    start_date: str = Field(
        default_factory=today_iso,
        alias="startDate",
        pattern=ISO_DATE_PATTERN,
        description="First day of the budget period, YYYY-MM-DD"
    )

    @field_validator('start_date')
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    def to_storage_dict(self) -> dict:
        """JSON-ready dict in the on-disk shape (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single field that had to be repaired while validating stored data."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_type', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the repair"
    )
    severity: str = Field(
        default="warning",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    index: Optional[int] = Field(
        default=None,
        description="Position of the record in its collection, if any"
    )
