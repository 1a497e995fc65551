"""
Schema migrations for stored collections.

Forward-only. A registry holds an ordered list of steps; step N receives
a payload in the version-N shape and returns it in the version-N+1
shape. The current version of a collection is the number of steps.

Adding a version means appending ONE step to the collection's step
tuple below. Existing steps are never edited: data written by any past
release must keep reaching the current version along the same path.
"""

from copy import deepcopy
from typing import Any, Callable, Iterable

from expense_vault.models.records import TransactionType, new_record_id
from expense_vault.persistence.errors import MigrationError


MigrationStep = Callable[[Any], Any]


class MigrationRegistry:
    """Ordered, append-only sequence of single-version migration steps."""

    def __init__(self, steps: Iterable[MigrationStep] = ()) -> None:
        self._steps: tuple[MigrationStep, ...] = tuple(steps)

    @property
    def target_version(self) -> int:
        return len(self._steps)

    @property
    def steps(self) -> tuple[MigrationStep, ...]:
        return self._steps

    def with_step(self, step: MigrationStep) -> "MigrationRegistry":
        """A new registry with one more version on top of this one."""
        return MigrationRegistry(self._steps + (step,))

    def migrate(self, payload: Any, from_version: int) -> Any:
        """
        Bring a payload from `from_version` up to target_version.

        Steps from_version .. target_version - 1 run in order on a copy
        of the payload. A payload already at (or past) the target is
        returned unchanged.

        Raises:
            ValueError: If from_version is negative
            MigrationError: If a step raises
        """
        if from_version < 0:
            raise ValueError(f"from_version must be >= 0, got {from_version}")
        if from_version >= self.target_version:
            return payload

        data = deepcopy(payload)
        for version in range(from_version, self.target_version):
            step = self._steps[version]
            try:
                data = step(data)
            except Exception as e:
                raise MigrationError(
                    f"Migration v{version} -> v{version + 1} "
                    f"({getattr(step, '__name__', step)!s}) failed: {e}",
                    from_version=version,
                ) from e
        return data


# =============================================================================
# TRANSACTIONS
# =============================================================================

def transactions_v0_to_v1(payload: list) -> list:
    """Pre-versioning expense list -> v1.

    Old builds stored plain expenses: records may lack an id and never
    have a type. Every object gets an id and is typed as an expense.
    Non-object entries are left for the validator.
    """
    upgraded = []
    for item in payload:
        if isinstance(item, dict):
            item = dict(item)
            if not item.get("id"):
                item["id"] = new_record_id()
            item.setdefault("type", TransactionType.EXPENSE.value)
        upgraded.append(item)
    return upgraded


TRANSACTION_STEPS: tuple[MigrationStep, ...] = (
    transactions_v0_to_v1,
)


# =============================================================================
# BUDGET
# =============================================================================

def budget_v0_to_v1(payload: Any) -> dict:
    """Bare budget number -> {"amount": n}.

    No start date is written: the default start date is "today" at
    load time, not the day the data happened to be migrated.
    """
    if isinstance(payload, dict):
        return dict(payload)
    return {"amount": payload}


BUDGET_STEPS: tuple[MigrationStep, ...] = (
    budget_v0_to_v1,
)


# =============================================================================
# CATEGORIES
# =============================================================================

def categories_v0_to_v1(payload: list) -> list:
    """The bare category list is already the v1 payload."""
    return list(payload)


CATEGORY_STEPS: tuple[MigrationStep, ...] = (
    categories_v0_to_v1,
)
