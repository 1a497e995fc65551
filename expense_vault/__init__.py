"""
Expense Vault - Source Package

Versioned local persistence for a personal expense tracker:
transactions, a budget configuration and a category list, stored in an
embedded key-value store that may hold data written by older versions
of the application.

DESIGN PRINCIPLES:
1. Never trust data crossing the storage boundary
2. Stored data only ever moves forward through ordered migrations
3. Reads degrade to defaults, writes are best-effort
4. Every load and persist outcome is logged
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Vault Team"
