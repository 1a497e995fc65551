"""Persistence event logging package."""

from expense_vault.audit.logger import PersistenceLogger, configure_logging

__all__ = ["PersistenceLogger", "configure_logging"]
