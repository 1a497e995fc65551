"""Shared fixtures for Expense Vault tests."""

import json

import pytest
import structlog

from expense_vault.audit import PersistenceLogger
from expense_vault.config import get_settings
from expense_vault.services.storage import InMemoryKeyValueStore


@pytest.fixture(autouse=True)
def reset_logging_and_settings():
    """Undo structlog configuration and cached settings after each test."""
    yield
    structlog.reset_defaults()
    get_settings.cache_clear()


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def event_logger():
    return PersistenceLogger()


@pytest.fixture
def store_with():
    """Build an in-memory store holding JSON-encoded values."""
    def _build(**values):
        return InMemoryKeyValueStore({
            key: value if isinstance(value, str) else json.dumps(value)
            for key, value in values.items()
        })
    return _build


@pytest.fixture
def logged_types(event_logger):
    """Event type values logged so far to event_logger, oldest first."""
    def _types(collection=None):
        return [
            e.event_type.value
            for e in reversed(event_logger.get_recent_events(limit=1000, collection=collection))
        ]
    return _types
