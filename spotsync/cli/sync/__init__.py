"""Sync CLI commands.

Provides the store commands:
- migrate: Transfer tests from one store to another
- compare: Show differences between two stores
- sync: Copy missing tests between two stores
- validate: Check a store's data before a transfer
- stats: Show dataset statistics
"""

from spotsync.cli.sync import compare, migrate, stats, synchronize, validate

__all__ = ["compare", "migrate", "stats", "synchronize", "validate"]
