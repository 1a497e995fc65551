"""Tests for settings and application wiring."""

import json
from pathlib import Path

import pytest
import structlog

from expense_vault.audit import PersistenceLogger, configure_logging
from expense_vault.config import (
    LoggingSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from expense_vault.models.events import PersistenceEventBuilder
from expense_vault.models.records import DEFAULT_BUDGET_AMOUNT, default_categories
from expense_vault.orchestrator import create_app_components
from expense_vault.persistence import LoadOutcome
from expense_vault.services.storage import InMemoryKeyValueStore, JsonFileKeyValueStore


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test the built-in defaults."""
        monkeypatch.delenv("EXPENSE_VAULT_STORAGE_BACKEND", raising=False)
        storage = StorageSettings()
        assert storage.backend == "json_file"
        assert storage.data_dir == Path.home() / ".expense_vault"
        assert storage.quota_bytes == 5 * 1024 * 1024

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test prefixed environment variables are read."""
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("EXPENSE_VAULT_LOG_LEVEL", "debug")

        settings = get_settings()
        assert settings.storage.backend == "sqlite"
        assert settings.storage.data_dir == tmp_path
        assert settings.logging.level == "DEBUG"

    def test_home_is_expanded(self):
        """Test ~ in the data directory is expanded."""
        assert StorageSettings(data_dir="~/vault").data_dir == Path.home() / "vault"

    def test_validate_all_settings(self, monkeypatch):
        """Test a bad value is reported per settings group."""
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_BACKEND", "floppy")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results
        assert results["logging"] is True
        assert results["app"] is True


class TestCreateAppComponents:
    """Tests for create_app_components."""

    def test_loads_every_collection(self, store_with):
        """Test stored data reaches each collection store."""
        kv = store_with(
            expenses=[{"name": "Coffee", "amount": 5}],
            budget=750,
            categories={"version": 1, "categories": ["Rent"]},
        )
        components = create_app_components(kv_store=kv, configure_logs=False)

        assert components.storage_available
        assert components.transactions.read()[0].name == "Coffee"
        assert components.budget.read().amount == 750
        assert components.categories.read() == ["Rent"]
        assert {name: r.outcome for name, r in components.load_results().items()} == {
            "transactions": LoadOutcome.MIGRATED,
            "budget": LoadOutcome.MIGRATED,
            "categories": LoadOutcome.LOADED,
        }

    def test_without_storage(self):
        """Test the application runs on defaults with no storage."""
        components = create_app_components(use_storage=False, configure_logs=False)

        assert not components.storage_available
        assert components.transactions.read() == []
        assert components.budget.read().amount == DEFAULT_BUDGET_AMOUNT
        assert components.categories.read() == default_categories()
        assert all(r.used_defaults for r in components.load_results().values())

        # Mutations still work for the session
        components.categories.mutate(["Only in memory"])
        assert components.categories.read() == ["Only in memory"]

    def test_opens_store_from_settings(self, monkeypatch, tmp_path):
        """Test the configured backend is opened and written to."""
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_BACKEND", "json_file")

        components = create_app_components(configure_logs=False)
        assert isinstance(components.kv_store, JsonFileKeyValueStore)

        components.categories.mutate(["Rent"])
        stored = json.loads((tmp_path / "categories.json").read_text(encoding="utf-8"))
        assert stored == {"version": 1, "categories": ["Rent"]}

    def test_unusable_storage_falls_back_to_defaults(self, monkeypatch, tmp_path):
        """Test an unopenable store means no storage, not a crash."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_DATA_DIR", str(blocker))
        monkeypatch.setenv("EXPENSE_VAULT_STORAGE_BACKEND", "json_file")

        components = create_app_components(configure_logs=False)
        assert not components.storage_available
        assert components.load_results()["budget"].outcome == LoadOutcome.STORE_UNAVAILABLE

    def test_collections_share_one_event_log(self):
        """Test every collection logs to the same event logger."""
        components = create_app_components(
            kv_store=InMemoryKeyValueStore(), configure_logs=False,
        )
        collections = {e.collection for e in components.event_logger.get_recent_events()}
        assert collections == {"transactions", "budget", "categories"}


class TestLogging:
    """Tests for logging setup and the event logger."""

    def test_configure_logging_json(self, caplog):
        """Test configured output is one JSON object per event."""
        configure_logging(LoggingSettings(level="INFO", json_output=True))
        structlog.get_logger("expense_vault.test").info("hello", collection="budget")

        [record] = [r for r in caplog.records if r.name == "expense_vault.test"]
        payload = json.loads(record.getMessage())
        assert payload["event"] == "hello"
        assert payload["level"] == "info"
        assert payload["logger"] == "expense_vault.test"
        assert payload["collection"] == "budget"

    def test_event_history_is_bounded(self):
        """Test only the most recent events are kept, newest first."""
        logger = PersistenceLogger(history_size=2)
        for key in ("a", "b", "c"):
            logger.log(PersistenceEventBuilder.no_stored_data("budget", key))
        assert [e.storage_key for e in logger.get_recent_events()] == ["c", "b"]

    def test_history_filters_by_collection(self):
        """Test history can be narrowed to one collection."""
        logger = PersistenceLogger()
        logger.log(PersistenceEventBuilder.no_stored_data("budget", "budget"))
        logger.log(PersistenceEventBuilder.no_stored_data("categories", "categories"))
        assert [e.collection for e in logger.get_recent_events(collection="budget")] == ["budget"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
