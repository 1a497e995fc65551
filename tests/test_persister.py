"""Tests for writing collections back as versioned envelopes."""

import json

import pytest

from expense_vault.models.records import BudgetConfig, Transaction
from expense_vault.persistence import (
    BUDGET,
    CATEGORIES,
    TRANSACTIONS,
    Persister,
    encode_envelope,
)
from expense_vault.services.storage import InMemoryKeyValueStore


class TestEncodeEnvelope:
    """Tests for encode_envelope."""

    def test_transactions_envelope(self):
        """Test the stored shape of the transaction list."""
        tx = Transaction(id="t1", name="Café", amount=3.2, date="2024-04-04")
        assert json.loads(encode_envelope(TRANSACTIONS, [tx])) == {
            "version": 1,
            "transactions": [{
                "id": "t1",
                "name": "Café",
                "amount": 3.2,
                "date": "2024-04-04",
                "type": "expense",
            }],
        }

    def test_non_ascii_is_written_as_is(self):
        """Test names are stored readably rather than escaped."""
        assert "Café" in encode_envelope(CATEGORIES, ["Café"])

    def test_budget_envelope(self):
        """Test the budget is written under its camelCase key."""
        text = encode_envelope(BUDGET, BudgetConfig(amount=80, start_date="2024-01-01"))
        assert json.loads(text) == {
            "version": 1,
            "budget": {"amount": 80.0, "startDate": "2024-01-01"},
        }

    def test_non_finite_numbers_are_rejected(self):
        """Test NaN never reaches storage as invalid JSON."""
        with pytest.raises(ValueError):
            encode_envelope(BUDGET, {"amount": float("nan")})


class TestPersister:
    """Tests for Persister.persist."""

    def test_successful_save(self, memory_store, event_logger, logged_types):
        """Test a save writes the envelope and reports success."""
        assert Persister(CATEGORIES, memory_store, event_logger).persist(["Food"])
        assert json.loads(memory_store.get_item("categories")) == {
            "version": 1,
            "categories": ["Food"],
        }
        assert logged_types() == ["persisted"]

    def test_save_always_writes_current_version(self, store_with, event_logger):
        """Test saving replaces legacy data with the current envelope."""
        store = store_with(expenses=[{"name": "Old"}])
        Persister(TRANSACTIONS, store, event_logger).persist([])
        assert json.loads(store.get_item("expenses")) == {"version": 1, "transactions": []}

    def test_no_store(self, event_logger, logged_types):
        """Test saving without storage fails quietly."""
        assert not Persister(CATEGORIES, None, event_logger).persist(["Food"])
        assert logged_types() == ["store_unavailable"]

    def test_quota_exceeded(self, event_logger):
        """Test a value over quota is reported, not raised."""
        store = InMemoryKeyValueStore(quota_bytes=10)
        assert not Persister(CATEGORIES, store, event_logger).persist(["Food", "Transport"])

        [event] = event_logger.get_recent_events()
        assert event.event_type.value == "write_failed"
        assert event.error_type == "QuotaExceededError"
        assert event.details == {"item_count": 2}
        assert store.get_item("categories") is None

    def test_closed_store(self, event_logger):
        """Test a store that went away is reported, not raised."""
        store = InMemoryKeyValueStore()
        store.close()
        assert not Persister(TRANSACTIONS, store, event_logger).persist([])
        assert event_logger.get_recent_events()[0].error_type == "StoreUnavailableError"

    def test_unencodable_value(self, memory_store, event_logger):
        """Test an unencodable value fails the save and leaves storage alone."""
        memory_store.set_item("budget", '{"version": 1, "budget": {"amount": 5}}')
        assert not Persister(BUDGET, memory_store, event_logger).persist({"amount": float("inf")})
        assert memory_store.get_item("budget") == '{"version": 1, "budget": {"amount": 5}}'

    def test_failed_save_keeps_previous_value(self, event_logger):
        """Test a rejected write does not clobber stored data."""
        store = InMemoryKeyValueStore({"categories": '{"version": 1, "categories": ["A"]}'}, quota_bytes=50)
        Persister(CATEGORIES, store, event_logger).persist(["x" * 100])
        assert store.get_item("categories") == '{"version": 1, "categories": ["A"]}'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
