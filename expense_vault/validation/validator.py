"""
Record Validation

DESIGN DECISION: Validation of stored data is total and defaulting.
Unlike validation of user input, there is nobody to ask: a field that
fails its check is replaced by its default, and the repair is REPORTED
(as a ValidationIssue) so it can be logged. Validation never raises.

Every field is checked independently, so one broken field never costs
the rest of the record. Unknown fields are dropped.

WHY AFTER MIGRATION TOO:
Migrations describe how well-formed old data changes shape. They do not
protect against a file that was hand-edited, truncated or written by a
buggy build, so every record is validated on every load, whatever its
stored version.
"""

import math
import re
from datetime import date
from typing import Any, Optional

from expense_vault.models.records import (
    DEFAULT_BUDGET_AMOUNT,
    DEFAULT_TRANSACTION_NAME,
    BudgetConfig,
    Transaction,
    TransactionType,
    ValidationIssue,
    default_categories,
    new_record_id,
    today_iso,
)


_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

_MISSING = object()


# =============================================================================
# FIELD CHECKS
# =============================================================================

def _as_finite_number(value: Any) -> Optional[float]:
    """The value as a finite float, or None if it is not a JSON number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _is_iso_date(value: Any) -> bool:
    """True for a YYYY-MM-DD string naming a real calendar day."""
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _issue(
    field: str,
    value: Any,
    expected: str,
    replacement: str,
    index: Optional[int],
) -> ValidationIssue:
    if value is _MISSING:
        return ValidationIssue(
            field=field,
            issue_type="missing",
            message=f"'{field}' is missing; using {replacement}",
            index=index,
        )
    return ValidationIssue(
        field=field,
        issue_type="invalid_value",
        message=f"'{field}' is not {expected} (got {type(value).__name__}); using {replacement}",
        index=index,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

def validate_transaction_with_issues(
    raw: Any,
    index: Optional[int] = None,
) -> tuple[Transaction, list[ValidationIssue]]:
    """
    Repair a decoded transaction record.

    Args:
        raw: Anything json.loads could have produced
        index: Position in the collection, recorded in issues

    Returns:
        (transaction, issues) where issues lists every repaired field
    """
    issues: list[ValidationIssue] = []

    if not isinstance(raw, dict):
        issues.append(ValidationIssue(
            field="record",
            issue_type="invalid_type",
            message=f"Record is a {type(raw).__name__}, not an object; using defaults",
            index=index,
        ))
        raw = {}

    # id: opaque, kept whenever it is usable
    record_id = raw.get("id", _MISSING)
    if isinstance(record_id, str) and record_id.strip():
        clean_id = record_id
    elif isinstance(record_id, int) and not isinstance(record_id, bool):
        clean_id = str(record_id)
    else:
        clean_id = new_record_id()
        issues.append(_issue("id", record_id, "a non-empty string", "a new id", index))

    name = raw.get("name", _MISSING)
    if isinstance(name, str) and name:
        clean_name = name
    else:
        clean_name = DEFAULT_TRANSACTION_NAME
        issues.append(_issue("name", name, "a non-empty string", repr(DEFAULT_TRANSACTION_NAME), index))

    amount = raw.get("amount", _MISSING)
    number = _as_finite_number(amount)
    if number is None:
        clean_amount = 0.0
        issues.append(_issue("amount", amount, "a finite number", "0", index))
    elif number < 0:
        # Amounts are magnitudes; the direction is carried by `type`
        clean_amount = -number
        issues.append(ValidationIssue(
            field="amount",
            issue_type="negative",
            message=f"'amount' is negative ({number}); using its magnitude",
            index=index,
        ))
    else:
        clean_amount = number

    raw_date = raw.get("date", _MISSING)
    if _is_iso_date(raw_date):
        clean_date = raw_date
    else:
        clean_date = today_iso()
        issues.append(_issue("date", raw_date, "a YYYY-MM-DD date", "today's date", index))

    category = raw.get("category", _MISSING)
    if category is _MISSING or category is None:
        clean_category = None
    elif isinstance(category, str):
        clean_category = category
    else:
        clean_category = None
        issues.append(_issue("category", category, "a string", "no category", index))

    raw_type = raw.get("type", _MISSING)
    try:
        clean_type = TransactionType(raw_type) if isinstance(raw_type, str) else None
    except ValueError:
        clean_type = None
    if clean_type is None:
        clean_type = TransactionType.EXPENSE
        issues.append(_issue("type", raw_type, "'expense' or 'income'", "'expense'", index))

    transaction = Transaction(
        id=clean_id,
        name=clean_name,
        amount=clean_amount,
        date=clean_date,
        category=clean_category,
        type=clean_type,
    )
    return transaction, issues


def validate_transaction(raw: Any) -> Transaction:
    """Repair a decoded transaction record, discarding the issue list."""
    transaction, _ = validate_transaction_with_issues(raw)
    return transaction


# =============================================================================
# BUDGET
# =============================================================================

def validate_budget_with_issues(raw: Any) -> tuple[BudgetConfig, list[ValidationIssue]]:
    """
    Repair a decoded budget configuration.

    The start date default is today's date *now*; it is never taken from
    the time the data was migrated.
    """
    issues: list[ValidationIssue] = []

    if not isinstance(raw, dict):
        issues.append(ValidationIssue(
            field="budget",
            issue_type="invalid_type",
            message=f"Budget is a {type(raw).__name__}, not an object; using defaults",
        ))
        raw = {}

    amount = raw.get("amount", _MISSING)
    number = _as_finite_number(amount)
    if number is None:
        number = DEFAULT_BUDGET_AMOUNT
        issues.append(_issue("amount", amount, "a finite number", f"{DEFAULT_BUDGET_AMOUNT:g}", None))

    raw_start = raw.get("startDate", _MISSING)
    if _is_iso_date(raw_start):
        start_date = raw_start
    else:
        start_date = today_iso()
        issues.append(_issue("startDate", raw_start, "a YYYY-MM-DD date", "today's date", None))

    return BudgetConfig(amount=number, start_date=start_date), issues


def validate_budget(raw: Any) -> BudgetConfig:
    """Repair a decoded budget configuration, discarding the issue list."""
    budget, _ = validate_budget_with_issues(raw)
    return budget


# =============================================================================
# CATEGORIES
# =============================================================================

def validate_category_with_issues(
    raw: Any,
    index: Optional[int] = None,
) -> tuple[Optional[str], list[ValidationIssue]]:
    """
    Repair one entry of the category list.

    A category has no meaningful default, so unusable entries are
    dropped (returned as None) rather than replaced.
    """
    if isinstance(raw, str) and raw.strip():
        return raw.strip(), []
    return None, [ValidationIssue(
        field="category",
        issue_type="dropped",
        message=f"Category entry {raw!r} is not a non-empty string; dropped",
        index=index,
    )]


def validate_category(raw: Any) -> Optional[str]:
    category, _ = validate_category_with_issues(raw)
    return category


def validate_categories(raw: Any) -> list[str]:
    """Repair a whole category list; anything but a list gives the defaults."""
    if not isinstance(raw, list):
        return default_categories()
    return [c for c in (validate_category(item) for item in raw) if c is not None]
