"""Tests for the forward-only migration registry and the built-in steps."""

import pytest

from expense_vault.persistence import BUDGET, CATEGORIES, TRANSACTIONS
from expense_vault.persistence.errors import MigrationError
from expense_vault.persistence.migrations import (
    MigrationRegistry,
    budget_v0_to_v1,
    categories_v0_to_v1,
    transactions_v0_to_v1,
)


def _append(tag):
    def step(payload):
        return payload + [tag]
    step.__name__ = f"append_{tag}"
    return step


class TestMigrationRegistry:
    """Tests for MigrationRegistry.migrate."""

    def test_target_version_is_step_count(self):
        """Test the current version equals the number of steps."""
        assert MigrationRegistry().target_version == 0
        assert MigrationRegistry([_append("a"), _append("b")]).target_version == 2

    def test_steps_run_in_order(self):
        """Test migrating from 0 runs every step once, in order."""
        registry = MigrationRegistry([_append("a"), _append("b"), _append("c")])
        assert registry.migrate([], 0) == ["a", "b", "c"]

    def test_partial_migration_starts_at_stored_version(self):
        """Test only the steps above the stored version run."""
        registry = MigrationRegistry([_append("a"), _append("b"), _append("c")])
        assert registry.migrate(["a", "b"], 2) == ["a", "b", "c"]

    def test_current_version_is_unchanged(self):
        """Test a payload already at the target is returned as-is."""
        registry = MigrationRegistry([_append("a")])
        payload = ["x"]
        assert registry.migrate(payload, 1) is payload

    def test_future_version_is_unchanged(self):
        """Test versions past the target are not migrated."""
        registry = MigrationRegistry([_append("a")])
        assert registry.migrate(["x"], 7) == ["x"]

    def test_migration_is_idempotent(self):
        """Test migrating a migrated payload again changes nothing."""
        registry = MigrationRegistry([_append("a"), _append("b")])
        once = registry.migrate([], 0)
        assert registry.migrate(once, registry.target_version) == once

    def test_input_is_not_mutated(self):
        """Test steps work on a copy of the stored payload."""
        def mutate_in_place(payload):
            payload.append("changed")
            return payload

        original = ["kept"]
        MigrationRegistry([mutate_in_place]).migrate(original, 0)
        assert original == ["kept"]

    def test_negative_version_is_rejected(self):
        """Test from_version must not be negative."""
        with pytest.raises(ValueError):
            MigrationRegistry([_append("a")]).migrate([], -1)

    def test_failing_step_raises_migration_error(self):
        """Test a step error is wrapped with the failing version."""
        def explode(payload):
            raise KeyError("amount")

        registry = MigrationRegistry([_append("a"), explode])
        with pytest.raises(MigrationError) as exc_info:
            registry.migrate([], 0)
        assert exc_info.value.from_version == 1
        assert "v1 -> v2" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_with_step_returns_new_registry(self):
        """Test appending a version leaves the original registry alone."""
        base = MigrationRegistry([_append("a")])
        extended = base.with_step(_append("b"))
        assert base.target_version == 1
        assert extended.target_version == 2
        assert extended.migrate([], 0) == ["a", "b"]


class TestBuiltInSteps:
    """Tests for the shipped migration steps."""

    def test_collections_are_at_version_one(self):
        """Test every collection's current version."""
        assert TRANSACTIONS.target_version == 1
        assert BUDGET.target_version == 1
        assert CATEGORIES.target_version == 1

    def test_legacy_expense_gets_id_and_type(self):
        """Test old expense records become typed transactions."""
        migrated = transactions_v0_to_v1([{"name": "Coffee", "amount": 5}])
        assert migrated[0]["type"] == "expense"
        assert migrated[0]["id"]
        assert migrated[0]["name"] == "Coffee"

    def test_existing_id_and_type_are_kept(self):
        """Test fields already present are not overwritten."""
        migrated = transactions_v0_to_v1([{"id": "t1", "type": "income"}])
        assert migrated == [{"id": "t1", "type": "income"}]

    def test_non_object_entries_pass_through(self):
        """Test entries the step cannot read are left for validation."""
        assert transactions_v0_to_v1(["junk", 3]) == ["junk", 3]

    def test_legacy_budget_number(self):
        """Test a bare budget number becomes an object."""
        assert budget_v0_to_v1(2500) == {"amount": 2500}

    def test_legacy_budget_object_is_copied(self):
        """Test an already-structured budget is copied unchanged."""
        payload = {"amount": 10}
        migrated = budget_v0_to_v1(payload)
        assert migrated == payload
        assert migrated is not payload

    def test_legacy_categories(self):
        """Test the category list shape did not change."""
        assert categories_v0_to_v1(["Food"]) == ["Food"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
