"""Storage backends for prefix records.

This module provides the storage Protocol and its in-memory and SQL-backed
implementations.
"""

# NOTE: Lazy imports keep SQLAlchemy out of processes that only use memory storage
# Import these directly when needed:
# from prefixstore.storage.base import PrefixStorage
# from prefixstore.storage.memory import InMemoryPrefixStorage
# from prefixstore.storage.sql import SQLPrefixStorage
# from prefixstore.storage.database import Database, DatabaseConfig
# from prefixstore.storage.factory import create_storage

__all__ = [
    "PrefixStorage",
    "InMemoryPrefixStorage",
    "SQLPrefixStorage",
    "Database",
    "DatabaseConfig",
    "create_storage",
]


def __getattr__(name: str):
    """Lazy load attributes to keep optional dependencies optional."""
    if name == "PrefixStorage":
        from prefixstore.storage.base import PrefixStorage

        return PrefixStorage
    elif name == "InMemoryPrefixStorage":
        from prefixstore.storage.memory import InMemoryPrefixStorage

        return InMemoryPrefixStorage
    elif name == "SQLPrefixStorage":
        from prefixstore.storage.sql import SQLPrefixStorage

        return SQLPrefixStorage
    elif name in ("Database", "DatabaseConfig"):
        from prefixstore.storage import database

        return getattr(database, name)
    elif name == "create_storage":
        from prefixstore.storage.factory import create_storage

        return create_storage
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
